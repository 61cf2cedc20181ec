"""
StrategyService 测试

策略生命周期: 创建 / 修改 / 关闭 / 存入 / 提取 / 转让，以及只读快照。
"""
from unittest.mock import MagicMock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.dca.application.batch_executor import BatchExecutor
from src.dca.application.setup_saga import SetupCoordinator
from src.dca.application.strategy_service import StrategyService
from src.dca.domain.domain_service.eligibility_filter import EligibilityFilter
from src.dca.domain.domain_service.execution.aggregate_swap_executor import (
    AggregateSwapExecutor,
)
from src.dca.domain.domain_service.profit_evaluator import ProfitEvaluator
from src.dca.domain.domain_service.routing.route_resolver import RouteResolver
from src.dca.domain.domain_service.valuation_service import ValuationService
from src.dca.domain.event.event_types import (
    DepositMadeEvent,
    StrategyCreatedEvent,
    StrategyDeletedEvent,
    WithdrawalMadeEvent,
)
from src.dca.domain.exceptions import (
    ERROR_INVALID_AMOUNT_PER_SWAP,
    ERROR_INVALID_DCA_TOKEN_AMOUNT,
    ERROR_INVALID_FREQUENCY,
    ERROR_INVALID_STRATEGY_TOKEN,
    ERROR_INVALID_TAKE_PROFIT,
    ERROR_INVALID_USDC_AMOUNT,
    ERROR_INVALID_USDC_TOKEN,
    ERROR_NOT_OWNER,
    ERROR_PAUSED,
    ERROR_STRATEGY_NOT_SET,
    AuthorizationError,
    ConfigurationError,
    DcaError,
    PausedError,
    ValidationError,
)
from src.dca.domain.value_object.dca_settings import AssetKind, DcaSettings
from src.dca.domain.value_object.swap_record import SwapRecord
from src.dca.infrastructure.access.in_memory_access_control import InMemoryAccessControl
from src.dca.infrastructure.gateway.simulated_collaborators import (
    InMemoryFundsTransfer,
    Payout,
    SimulatedWrapper,
)
from src.dca.infrastructure.persistence.in_memory_strategy_repository import (
    InMemoryStrategyRepository,
)

U = "USDC-c76f1f"
X = "MEX-455c57"
ADMIN = "erd1admin"
ALICE = "erd1alice"
BOB = "erd1bob"
BOT_ADDRESS = "erd1bot"
DAY = 86_400_000


class Engine:
    """策略服务与批量执行共享同一仓库 / 配置 / 场所桩"""

    def __init__(self, quote=10**6, configured=True, profit_fee_bps=1000):
        self.access = InMemoryAccessControl(admins=[ADMIN], bot_address=BOT_ADDRESS)
        dca_settings = DcaSettings(
            target_token=X,
            min_amount_per_cycle=10,
            profit_fee_bps=profit_fee_bps,
            allowed_frequencies={"daily": DAY, "weekly": 7 * DAY},
            strategy_token_id="DCAIDCA-a1b2c3",
        )
        if configured:
            self.setup = SetupCoordinator.preconfigured(dca_settings, self.access)
        else:
            self.setup = SetupCoordinator(self.access)

        self.venue = MagicMock()
        self.venue.get_pair.return_value = f"pool:{U}/{X}"
        self.venue.get_pool_balance.return_value = 10**12
        self.venue.get_amount_out.return_value = quote

        self.repository = InMemoryStrategyRepository()
        self.transfer = InMemoryFundsTransfer()
        self.events = []
        self.now = DAY

        evaluator = ProfitEvaluator()
        route_resolver = RouteResolver(self.venue, wrapped_native_token="WEGLD-bd4d79", stable_token=U)
        swap_executor = AggregateSwapExecutor(self.venue)
        self.service = StrategyService(
            repository=self.repository,
            setup=self.setup,
            funds_transfer=self.transfer,
            valuation=ValuationService(route_resolver, swap_executor),
            profit_evaluator=evaluator,
            event_handler=self.events.append,
        )
        self.executor = BatchExecutor(
            repository=self.repository,
            setup=self.setup,
            access_control=self.access,
            eligibility_filter=EligibilityFilter(self.repository, evaluator),
            route_resolver=route_resolver,
            swap_executor=swap_executor,
            wrapper=SimulatedWrapper(),
            funds_transfer=self.transfer,
            profit_evaluator=evaluator,
            clock=lambda: self.now,
        )


def build_service(quote=10**6, configured=True):
    """组装 StrategyService，场所报价固定为 quote"""
    engine = Engine(quote=quote, configured=configured)
    return engine.service, engine.repository, engine.transfer, engine.access, engine.events


@pytest.fixture
def harness():
    return build_service()


class TestCreateAndModify:
    """创建与修改"""

    def test_create_returns_new_nonce_owned_by_caller(self, harness):
        service, repository, _, _, events = harness

        nonce = service.create_strategy(ALICE, 100, "daily", take_profit_bps=500)

        record = repository.get(nonce)
        assert repository.owner_of(nonce) == ALICE
        assert (record.amount_per_cycle, record.cycle_period_millis, record.take_profit_bps) == (100, DAY, 500)
        assert (record.stable_balance, record.target_balance) == (0, 0)
        assert isinstance(events[-1], StrategyCreatedEvent)

    def test_create_below_minimum_rejected(self, harness):
        service = harness[0]
        with pytest.raises(ValidationError) as exc:
            service.create_strategy(ALICE, 9, "daily")
        assert exc.value.reason == ERROR_INVALID_AMOUNT_PER_SWAP

    def test_create_with_unknown_frequency_rejected(self, harness):
        service = harness[0]
        with pytest.raises(ValidationError) as exc:
            service.create_strategy(ALICE, 100, "hourly")
        assert exc.value.reason == ERROR_INVALID_FREQUENCY

    def test_create_requires_setup(self):
        service = build_service(configured=False)[0]
        with pytest.raises(ConfigurationError) as exc:
            service.create_strategy(ALICE, 100, "daily")
        assert exc.value.reason == ERROR_STRATEGY_NOT_SET

    def test_create_rejected_while_paused(self, harness):
        service, _, _, access, _ = harness
        access.pause(ADMIN)
        with pytest.raises(PausedError) as exc:
            service.create_strategy(ALICE, 100, "daily")
        assert exc.value.reason == ERROR_PAUSED

    def test_modify_keeps_balances_and_ledger(self, harness):
        service, repository, _, _, _ = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.deposit(ALICE, nonce, U, 500)

        service.modify_strategy(ALICE, nonce, 50, "weekly", take_profit_bps=2000)

        record = repository.get(nonce)
        assert (record.amount_per_cycle, record.cycle_period_millis) == (50, 7 * DAY)
        assert record.take_profit_bps == 2000
        assert record.stable_balance == 500

    def test_negative_take_profit_rejected_on_create(self, harness):
        service, repository, _, _, _ = harness
        with pytest.raises(ValidationError) as exc:
            service.create_strategy(ALICE, 100, "daily", take_profit_bps=-20_000)
        assert exc.value.reason == ERROR_INVALID_TAKE_PROFIT
        assert repository.list_nonces() == []

    def test_negative_take_profit_rejected_on_modify(self, harness):
        service, repository, _, _, _ = harness
        nonce = service.create_strategy(ALICE, 100, "daily", take_profit_bps=500)
        with pytest.raises(ValidationError) as exc:
            service.modify_strategy(ALICE, nonce, 100, "daily", take_profit_bps=-1)
        assert exc.value.reason == ERROR_INVALID_TAKE_PROFIT
        assert repository.get(nonce).take_profit_bps == 500

    def test_modify_by_non_owner_rejected(self, harness):
        service = harness[0]
        nonce = service.create_strategy(ALICE, 100, "daily")
        with pytest.raises(AuthorizationError) as exc:
            service.modify_strategy(BOB, nonce, 100, "daily")
        assert exc.value.reason == ERROR_NOT_OWNER


class TestDepositWithdraw:
    """资金进出"""

    def test_deposit_then_withdraw_restores_state(self, harness):
        service, repository, transfer, _, _ = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        before = repository.get(nonce)

        service.deposit(ALICE, nonce, U, 700)
        service.withdraw(ALICE, nonce, 700, AssetKind.STABLE)

        assert repository.get(nonce) == before
        assert transfer.payouts == [Payout(recipient=ALICE, token=U, amount=700)]

    def test_deposit_wrong_token(self, harness):
        service = harness[0]
        nonce = service.create_strategy(ALICE, 100, "daily")
        with pytest.raises(ValidationError) as exc:
            service.deposit(ALICE, nonce, X, 100)
        assert exc.value.reason == ERROR_INVALID_USDC_TOKEN

    def test_deposit_zero_amount(self, harness):
        service = harness[0]
        nonce = service.create_strategy(ALICE, 100, "daily")
        with pytest.raises(ValidationError) as exc:
            service.deposit(ALICE, nonce, U, 0)
        assert exc.value.reason == ERROR_INVALID_USDC_AMOUNT

    def test_deposit_into_unknown_strategy(self, harness):
        service = harness[0]
        with pytest.raises(ValidationError) as exc:
            service.deposit(ALICE, 99, U, 100)
        assert exc.value.reason == ERROR_INVALID_STRATEGY_TOKEN

    def test_withdraw_more_than_stable_balance(self, harness):
        service, repository, transfer, _, events = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.deposit(ALICE, nonce, U, 100)
        published = len(events)

        with pytest.raises(ValidationError) as exc:
            service.withdraw(ALICE, nonce, 101, AssetKind.STABLE)

        assert exc.value.reason == ERROR_INVALID_USDC_AMOUNT
        assert repository.get(nonce).stable_balance == 100
        assert transfer.payouts == []
        assert len(events) == published

    def test_withdraw_target_reason(self, harness):
        service = harness[0]
        nonce = service.create_strategy(ALICE, 100, "daily")
        with pytest.raises(ValidationError) as exc:
            service.withdraw(ALICE, nonce, 1, AssetKind.TARGET)
        assert exc.value.reason == ERROR_INVALID_DCA_TOKEN_AMOUNT

    def test_withdraw_target_pays_target_token(self, harness):
        service, repository, transfer, _, events = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        record = repository.get(nonce)
        record.target_balance = 40
        repository.save(record)

        service.withdraw(ALICE, nonce, 15, AssetKind.TARGET)

        assert repository.get(nonce).target_balance == 25
        assert transfer.payouts == [Payout(recipient=ALICE, token=X, amount=15)]
        assert isinstance(events[-1], WithdrawalMadeEvent)

    def test_withdraw_by_non_owner_rejected(self, harness):
        service = harness[0]
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.deposit(ALICE, nonce, U, 100)
        with pytest.raises(AuthorizationError):
            service.withdraw(BOB, nonce, 100, AssetKind.STABLE)

    def test_deposit_event(self, harness):
        service, _, _, _, events = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.deposit(ALICE, nonce, U, 300)
        assert events[-1] == DepositMadeEvent(
            timestamp=events[-1].timestamp, owner=ALICE, nonce=nonce, stable_amount=300
        )


class TestDeleteAndTransfer:
    """关闭与转让"""

    def test_delete_returns_both_balances(self, harness):
        service, repository, transfer, _, events = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.deposit(ALICE, nonce, U, 250)
        record = repository.get(nonce)
        record.target_balance = 30
        repository.save(record)

        service.delete_strategy(ALICE, nonce)

        assert service.get_strategy(nonce) is None
        assert transfer.payouts == [
            Payout(recipient=ALICE, token=U, amount=250),
            Payout(recipient=ALICE, token=X, amount=30),
        ]
        assert isinstance(events[-1], StrategyDeletedEvent)

    def test_delete_empty_strategy_pays_nothing(self, harness):
        service, _, transfer, _, _ = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.delete_strategy(ALICE, nonce)
        assert transfer.payouts == []

    def test_deleted_nonce_not_reused(self, harness):
        service = harness[0]
        first = service.create_strategy(ALICE, 100, "daily")
        service.delete_strategy(ALICE, first)
        assert service.create_strategy(ALICE, 100, "daily") == first + 1

    def test_transfer_changes_owner(self, harness):
        service = harness[0]
        nonce = service.create_strategy(ALICE, 100, "daily")
        service.deposit(ALICE, nonce, U, 100)

        service.transfer_strategy(ALICE, nonce, BOB)

        assert service.get_strategy(nonce).owner == BOB
        service.withdraw(BOB, nonce, 100, AssetKind.STABLE)
        with pytest.raises(AuthorizationError):
            service.deposit(ALICE, nonce, U, 1)


class TestReadViews:
    """只读视图"""

    def test_unknown_strategy_is_none(self, harness):
        assert harness[0].get_strategy(12345) is None

    def test_list_in_nonce_order(self, harness):
        service = harness[0]
        a = service.create_strategy(ALICE, 100, "daily")
        b = service.create_strategy(BOB, 200, "weekly")
        assert [s.nonce for s in service.list_strategies()] == [a, b]
        assert service.list_strategy_ids() == [a, b]

    def test_take_profit_flag_when_in_profit(self):
        service, repository, _, _, _ = build_service(quote=1_100)
        nonce = service.create_strategy(ALICE, 100, "daily", take_profit_bps=1000)
        record = repository.get(nonce)
        record.target_balance = 50
        record.buys.append(SwapRecord(1_000, 50, DAY))
        repository.save(record)

        assert service.get_strategy(nonce).take_profit_eligible

    def test_take_profit_flag_below_threshold(self):
        service, repository, _, _, _ = build_service(quote=1_099)
        nonce = service.create_strategy(ALICE, 100, "daily", take_profit_bps=1000)
        record = repository.get(nonce)
        record.target_balance = 50
        record.buys.append(SwapRecord(1_000, 50, DAY))
        repository.save(record)

        assert not service.get_strategy(nonce).take_profit_eligible

    def test_zero_threshold_never_flagged(self):
        service, repository, _, _, _ = build_service(quote=10**9)
        nonce = service.create_strategy(ALICE, 100, "daily", take_profit_bps=0)
        record = repository.get(nonce)
        record.target_balance = 50
        record.buys.append(SwapRecord(1_000, 50, DAY))
        repository.save(record)

        assert not service.get_strategy(nonce).take_profit_eligible

    def test_reads_allowed_while_paused(self, harness):
        service, _, _, access, _ = harness
        nonce = service.create_strategy(ALICE, 100, "daily")
        access.pause(ADMIN)
        assert service.get_strategy(nonce).nonce == nonce


operations = st.lists(
    st.tuples(
        st.sampled_from(["deposit", "withdraw_stable", "withdraw_target", "buy", "take_profit"]),
        st.integers(min_value=0, max_value=1),
        st.integers(min_value=-5, max_value=1_000),
    ),
    max_size=30,
)


class TestBalanceProperty:
    """Feature: strategy-lifecycle, Property: 余额永不为负"""

    @given(fee_bps=st.integers(min_value=0, max_value=10_000), ops=operations)
    @settings(max_examples=100, deadline=None)
    def test_balances_never_negative(self, fee_bps, ops):
        """存取与买入 / 止盈批次任意交错，失败的操作不改变记录，余额始终非负"""
        engine = Engine(profit_fee_bps=fee_bps)
        nonces = [
            engine.service.create_strategy(ALICE, 10, "daily", take_profit_bps=0),
            engine.service.create_strategy(ALICE, 10, "daily", take_profit_bps=500),
        ]

        for op, index, amount in ops:
            nonce = nonces[index]
            before = [engine.repository.get(n) for n in nonces]
            engine.venue.multi_pair_swap.return_value = max(amount, 0)
            try:
                if op == "deposit":
                    engine.service.deposit(ALICE, nonce, U, amount)
                elif op == "withdraw_stable":
                    engine.service.withdraw(ALICE, nonce, amount, AssetKind.STABLE)
                elif op == "withdraw_target":
                    engine.service.withdraw(ALICE, nonce, amount, AssetKind.TARGET)
                elif op == "buy":
                    engine.now += DAY
                    engine.executor.run_buy_cycle(BOT_ADDRESS, nonces)
                else:
                    engine.executor.run_take_profit_cycle(BOT_ADDRESS, nonces)
            except DcaError:
                assert [engine.repository.get(n) for n in nonces] == before

            for n in nonces:
                record = engine.repository.get(n)
                assert record.stable_balance >= 0
                assert record.target_balance >= 0

    @given(
        fee_bps=st.integers(min_value=0, max_value=10_000),
        bought=st.integers(min_value=1, max_value=10_000),
        proceeds=st.integers(min_value=0, max_value=10**7),
    )
    @settings(max_examples=100, deadline=None)
    def test_take_profit_credit_never_negative(self, fee_bps, bought, proceeds):
        """止盈到账 = 卖出所得 - 业绩费，落在 [0, 卖出所得] 区间内"""
        engine = Engine(profit_fee_bps=fee_bps)
        nonce = engine.service.create_strategy(ALICE, 10, "daily", take_profit_bps=500)
        record = engine.repository.get(nonce)
        record.target_balance = 50
        record.buys.append(SwapRecord(bought, 50, DAY))
        engine.repository.save(record)
        engine.venue.multi_pair_swap.return_value = proceeds

        report = engine.executor.run_take_profit_cycle(BOT_ADDRESS, [nonce])

        after = engine.repository.get(nonce)
        assert after.target_balance == 0
        assert 0 <= after.stable_balance <= proceeds
        assert after.stable_balance + report.total_fee == proceeds
