import json
import random
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import patch

from django.test import SimpleTestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from wagers.conf import WagerPolicy
from wagers.engine import WagerEngine, get_engine, set_engine
from wagers.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    BelowMinimumError,
    InsufficientBalanceError,
    InvalidGameError,
    InvalidInputError,
    MissingDestinationError,
    RecordedButUnloggedError,
    RecordNotFoundError,
    StorageFailureError,
    WagerError,
)
from wagers.middleware import _redact
from wagers.models import (
    Account,
    CoinPick,
    CoinSide,
    Game,
    NumbersOutcome,
    NumbersPick,
    PayoutDestination,
    SlotsPick,
    StatsDelta,
    TransactionRecord,
    WheelPick,
)
from wagers.services import GameResolver, parse_pick
from wagers.stores import AccountStore, BetLog, RecordLog, TransactionLog
from wagers.utils import ScriptedOutcomeProvider, SeededOutcomeProvider

DESTINATION = {"iban": "AO06 0040 0000 1234 5678 9012 3", "account_name": "Ana Domingos"}

LOSING_WHEEL_SEGMENT = 1


def make_engine(**policy):
    provider = ScriptedOutcomeProvider()
    engine = WagerEngine(provider=provider, policy=WagerPolicy(**policy))
    return engine, provider


# ============================================================
# Outcome Provider Tests
# ============================================================


class OutcomeProviderTest(SimpleTestCase):
    def test_seeded_provider_is_reproducible(self):
        first = SeededOutcomeProvider(42)
        second = SeededOutcomeProvider(42)
        self.assertEqual(
            [first.draw_uniform(25) for _ in range(20)],
            [second.draw_uniform(25) for _ in range(20)],
        )

    def test_draw_uniform_stays_in_range(self):
        provider = SeededOutcomeProvider(7)
        draws = {provider.draw_uniform(8) for _ in range(500)}
        self.assertTrue(draws <= set(range(8)))
        self.assertEqual(len(draws), 8)

    def test_draw_boolean_extremes(self):
        provider = SeededOutcomeProvider(1)
        self.assertFalse(any(provider.draw_boolean(0.0) for _ in range(50)))
        self.assertTrue(all(provider.draw_boolean(1.0) for _ in range(50)))

    def test_invalid_arguments_raise(self):
        provider = SeededOutcomeProvider(1)
        with self.assertRaises(ValueError):
            provider.draw_uniform(0)
        with self.assertRaises(ValueError):
            provider.draw_boolean(1.5)

    def test_scripted_provider_replays_in_order(self):
        provider = ScriptedOutcomeProvider(uniform=[3, 0], boolean=[True, False])
        self.assertEqual(provider.draw_uniform(5), 3)
        self.assertEqual(provider.draw_uniform(5), 0)
        self.assertTrue(provider.draw_boolean(0.5))
        self.assertFalse(provider.draw_boolean(0.5))
        self.assertEqual(provider.remaining, 0)

    def test_scripted_provider_exhausted_raises(self):
        provider = ScriptedOutcomeProvider()
        with self.assertRaises(LookupError):
            provider.draw_uniform(3)
        with self.assertRaises(LookupError):
            provider.draw_boolean(0.5)

    def test_scripted_value_out_of_range_raises(self):
        provider = ScriptedOutcomeProvider(uniform=[9])
        with self.assertRaises(LookupError):
            provider.draw_uniform(8)


# ============================================================
# Game Resolution Tests
# ============================================================


class GameResolverTest(SimpleTestCase):
    def setUp(self):
        self.provider = ScriptedOutcomeProvider()
        self.resolver = GameResolver(self.provider)

    def test_numbers_win_pays_24x(self):
        self.provider.queue_uniform(6)  # winning number 7
        resolution = self.resolver.resolve(NumbersPick(selected_number=7), 100)
        self.assertTrue(resolution.won)
        self.assertEqual(resolution.prize, 2400)
        self.assertEqual(resolution.outcome, NumbersOutcome(selected=7, winning=7))

    def test_numbers_loss_pays_nothing(self):
        self.provider.queue_uniform(0)  # winning number 1
        resolution = self.resolver.resolve(NumbersPick(selected_number=7), 100)
        self.assertFalse(resolution.won)
        self.assertEqual(resolution.prize, 0)
        self.assertEqual(resolution.outcome.winning, 1)

    def test_slots_three_of_a_kind_pays_10x(self):
        self.provider.queue_uniform(4, 4, 4)
        resolution = self.resolver.resolve(SlotsPick(), 300)
        self.assertTrue(resolution.won)
        self.assertEqual(resolution.prize, 3000)
        self.assertEqual(resolution.outcome.symbols, ("diamond", "diamond", "diamond"))

    def test_slots_mismatch_loses(self):
        self.provider.queue_uniform(4, 4, 5)
        resolution = self.resolver.resolve(SlotsPick(), 300)
        self.assertFalse(resolution.won)
        self.assertEqual(resolution.prize, 0)

    def test_wheel_segment_six_pays_5x(self):
        self.provider.queue_uniform(6)
        resolution = self.resolver.resolve(WheelPick(), 500)
        self.assertTrue(resolution.won)
        self.assertEqual(resolution.prize, 2500)
        self.assertEqual(resolution.outcome.multiplier, Decimal("5"))

    def test_wheel_zero_segment_loses(self):
        self.provider.queue_uniform(LOSING_WHEEL_SEGMENT)
        resolution = self.resolver.resolve(WheelPick(), 500)
        self.assertFalse(resolution.won)
        self.assertEqual(resolution.prize, 0)

    def test_wheel_fractional_prize_rounds_down(self):
        self.provider.queue_uniform(2)  # 1.5x
        resolution = self.resolver.resolve(WheelPick(), 101)
        self.assertTrue(resolution.won)
        self.assertEqual(resolution.prize, 151)

    def test_coin_matching_flip_pays_2x(self):
        self.provider.queue_boolean(True)
        resolution = self.resolver.resolve(CoinPick(choice=CoinSide.HEADS), 250)
        self.assertTrue(resolution.won)
        self.assertEqual(resolution.prize, 500)
        self.assertEqual(resolution.outcome.as_dict(), {"choice": "heads", "result": "heads"})

    def test_coin_other_side_loses(self):
        self.provider.queue_boolean(False)
        resolution = self.resolver.resolve(CoinPick(choice=CoinSide.HEADS), 250)
        self.assertFalse(resolution.won)
        self.assertEqual(resolution.prize, 0)
        self.assertEqual(resolution.outcome.result, CoinSide.TAILS)


class ParsePickTest(SimpleTestCase):
    def test_unknown_game_raises(self):
        with self.assertRaises(InvalidGameError):
            parse_pick("roulette", {})
        with self.assertRaises(InvalidGameError):
            parse_pick(None, {})

    def test_numbers_requires_number_in_range(self):
        for payload in ({}, {"selected_number": 0}, {"selected_number": 26},
                        {"selected_number": "7"}, {"selected_number": True}):
            with self.subTest(payload=payload):
                with self.assertRaises(InvalidInputError):
                    parse_pick("numbers", payload)

    def test_numbers_bounds_accepted(self):
        self.assertEqual(parse_pick("numbers", {"selected_number": 1}).selected_number, 1)
        self.assertEqual(parse_pick("numbers", {"selected_number": 25}).selected_number, 25)

    def test_coin_requires_a_side(self):
        with self.assertRaises(InvalidInputError):
            parse_pick("coin", {})
        with self.assertRaises(InvalidInputError):
            parse_pick("coin", {"choice": "edge"})
        self.assertEqual(parse_pick("coin", {"choice": "TAILS"}).choice, CoinSide.TAILS)

    def test_game_data_must_be_an_object(self):
        with self.assertRaises(InvalidInputError):
            parse_pick("slots", ["not", "a", "dict"])

    def test_inputless_games_ignore_payload(self):
        self.assertEqual(parse_pick("slots", None), SlotsPick())
        self.assertEqual(parse_pick(Game.WHEEL, {"extra": 1}), WheelPick())


# ============================================================
# Store Tests
# ============================================================


class AccountStoreTest(SimpleTestCase):
    def setUp(self):
        self.store = AccountStore()

    def test_get_returns_a_copy(self):
        account = self.store.add(Account(balance=500))
        copy = self.store.get(account.uuid)
        copy.balance = 10**9
        self.assertEqual(self.store.get(account.uuid).balance, 500)

    def test_lookup_by_string_id(self):
        account = self.store.add(Account())
        self.assertEqual(self.store.get(str(account.uuid)).uuid, account.uuid)

    def test_unknown_account_raises(self):
        with self.assertRaises(AccountNotFoundError):
            self.store.get(uuid.uuid4())
        with self.assertRaises(AccountNotFoundError):
            self.store.get("not-a-uuid")

    def test_duplicate_account_rejected(self):
        account = self.store.add(Account())
        with self.assertRaises(ValueError):
            self.store.add(Account(uuid=account.uuid))


class RecordLogTest(SimpleTestCase):
    def setUp(self):
        self.account_a = uuid.uuid4()
        self.account_b = uuid.uuid4()

    def _deposit(self, account_id, amount=1000):
        return TransactionRecord(
            account_id=account_id,
            transaction_type=TransactionRecord.TransactionType.DEPOSIT,
            amount=amount,
            status=TransactionRecord.Status.COMPLETED,
        )

    def test_history_is_newest_first_and_per_account(self):
        log = TransactionLog()
        appended = [log.append(self._deposit(self.account_a, 1000 + i)) for i in range(5)]
        log.append(self._deposit(self.account_b))

        history = log.history_for(self.account_a)
        self.assertEqual([r.id for r in history], [r.id for r in reversed(appended)])
        self.assertEqual(len(log.history_for(self.account_b)), 1)
        self.assertEqual(len(log), 6)

    def test_history_limit(self):
        log = RecordLog()
        for _ in range(5):
            log.append(self._deposit(self.account_a))
        self.assertEqual(len(log.history_for(self.account_a, limit=3)), 3)

    def test_filters_by_type_and_status(self):
        log = TransactionLog()
        log.append(self._deposit(self.account_a))
        log.append(
            TransactionRecord(
                account_id=self.account_a,
                transaction_type=TransactionRecord.TransactionType.WITHDRAWAL,
                amount=2000,
                status=TransactionRecord.Status.PENDING,
                destination=PayoutDestination(**DESTINATION),
            )
        )
        self.assertEqual(len(log.history_for(self.account_a, transaction_type="deposit")), 1)
        pending = log.history_for(self.account_a, status="PENDING")
        self.assertEqual(len(pending), 1)
        self.assertEqual(pending[0].amount, 2000)

    def test_full_log_raises_storage_failure(self):
        log = BetLog(capacity=0)
        with self.assertRaises(StorageFailureError):
            log.append(self._deposit(self.account_a))
        self.assertEqual(len(log), 0)

    def test_get_checks_ownership(self):
        log = TransactionLog()
        record = log.append(self._deposit(self.account_a))
        self.assertEqual(log.get(self.account_a, record.id), record)
        with self.assertRaises(RecordNotFoundError):
            log.get(self.account_b, record.id)


# ============================================================
# Ledger Tests
# ============================================================


class LedgerServiceTest(SimpleTestCase):
    def setUp(self):
        self.engine, _ = make_engine()
        self.ledger = self.engine.ledger
        self.account = self.ledger.open_account(opening_balance=5000)

    def test_open_account_uses_welcome_bonus(self):
        account = self.ledger.open_account()
        self.assertEqual(account.balance, 100000)
        self.assertTrue(account.is_active)

    def test_apply_delta_updates_balance_and_stats(self):
        stats = self.ledger.apply_delta(
            self.account.uuid, -1000, 3000, StatsDelta(staked=1000, won=3000, bets=1)
        )
        self.assertEqual(stats.balance, 7000)
        self.assertEqual(stats.total_staked, 1000)
        self.assertEqual(stats.total_won, 3000)
        self.assertEqual(stats.bet_count, 1)

    def test_apply_delta_rejects_negative_balance(self):
        with self.assertRaises(InsufficientBalanceError):
            self.ledger.apply_delta(self.account.uuid, 0, -5001)
        self.assertEqual(self.ledger.get_stats(self.account.uuid).balance, 5000)

    def test_stake_is_checked_before_prize(self):
        with self.assertRaises(InsufficientBalanceError):
            self.ledger.apply_delta(self.account.uuid, -6000, 60000)
        self.assertEqual(self.ledger.get_stats(self.account.uuid).balance, 5000)

    def test_positive_stake_delta_is_a_bug(self):
        with self.assertRaises(ValueError):
            self.ledger.apply_delta(self.account.uuid, 100, 0)

    def test_inactive_account_rejects_mutation(self):
        self.ledger.deactivate_account(self.account.uuid)
        with self.assertRaises(AccountInactiveError):
            self.ledger.apply_delta(self.account.uuid, 0, 1000)
        with self.assertRaises(AccountInactiveError):
            self.ledger.deposit(self.account.uuid, 1000)
        self.assertFalse(self.ledger.get_account(self.account.uuid).is_active)

    def test_deposit_below_minimum_rejected(self):
        with self.assertRaises(BelowMinimumError):
            self.ledger.deposit(self.account.uuid, 999)
        self.assertEqual(self.ledger.get_stats(self.account.uuid).balance, 5000)
        self.assertEqual(self.engine.transaction_history(self.account.uuid), [])

    def test_deposit_minimum_succeeds(self):
        outcome = self.ledger.deposit(self.account.uuid, 1000)
        self.assertEqual(outcome.new_balance, 6000)
        self.assertEqual(outcome.record.status, TransactionRecord.Status.COMPLETED)
        self.assertEqual(
            outcome.record.transaction_type, TransactionRecord.TransactionType.DEPOSIT
        )
        self.assertEqual(self.engine.transaction_history(self.account.uuid), [outcome.record])

    def test_deposit_requires_integer(self):
        with self.assertRaises(InvalidInputError):
            self.ledger.deposit(self.account.uuid, 1500.5)

    def test_deposit_unknown_account(self):
        with self.assertRaises(AccountNotFoundError):
            self.ledger.deposit(uuid.uuid4(), 1000)

    def test_withdraw_success_is_pending(self):
        outcome = self.ledger.withdraw(self.account.uuid, 3000, DESTINATION)
        self.assertEqual(outcome.new_balance, 2000)
        self.assertEqual(outcome.record.status, TransactionRecord.Status.PENDING)
        self.assertEqual(outcome.record.destination.account_name, "Ana Domingos")

    def test_withdraw_entire_balance(self):
        outcome = self.ledger.withdraw(self.account.uuid, 5000, DESTINATION)
        self.assertEqual(outcome.new_balance, 0)

    def test_withdraw_exceeding_balance_creates_no_record(self):
        with self.assertRaises(InsufficientBalanceError):
            self.ledger.withdraw(self.account.uuid, 5001, DESTINATION)
        self.assertEqual(self.ledger.get_stats(self.account.uuid).balance, 5000)
        self.assertEqual(self.engine.transaction_history(self.account.uuid), [])

    def test_withdraw_below_minimum(self):
        with self.assertRaises(BelowMinimumError):
            self.ledger.withdraw(self.account.uuid, 999, DESTINATION)

    def test_withdraw_requires_destination(self):
        for destination in (None, {}, {"iban": "AO06"}, {"iban": "  ", "account_name": "Ana"}):
            with self.subTest(destination=destination):
                with self.assertRaises(MissingDestinationError):
                    self.ledger.withdraw(self.account.uuid, 1000, destination)
        self.assertEqual(self.ledger.get_stats(self.account.uuid).balance, 5000)

    def test_withdraw_reports_balance_before_destination(self):
        with self.assertRaises(InsufficientBalanceError):
            self.ledger.withdraw(self.account.uuid, 50000, {})
        with self.assertRaises(BelowMinimumError):
            self.ledger.withdraw(self.account.uuid, 500, {})


# ============================================================
# Wager Coordinator Tests
# ============================================================


class PlaceBetTest(SimpleTestCase):
    def setUp(self):
        self.engine, self.provider = make_engine()
        self.account = self.engine.open_account(opening_balance=10000)

    def test_numbers_win(self):
        self.provider.queue_uniform(6)
        outcome = self.engine.place_bet(self.account.uuid, "numbers", 100, {"selected_number": 7})

        self.assertTrue(outcome.won)
        self.assertEqual(outcome.prize, 2400)
        self.assertEqual(outcome.new_balance, 10000 - 100 + 2400)
        self.assertEqual(outcome.record.net_result, 2400)
        self.assertEqual(outcome.outcome.as_dict(), {"selected_number": 7, "winning_number": 7})

    def test_coin_loss_updates_stats(self):
        self.provider.queue_boolean(False)
        outcome = self.engine.place_bet(self.account.uuid, "coin", 400, {"choice": "heads"})

        self.assertFalse(outcome.won)
        self.assertEqual(outcome.record.net_result, -400)
        stats = self.engine.get_stats(self.account.uuid)
        self.assertEqual(stats.balance, 9600)
        self.assertEqual(stats.total_staked, 400)
        self.assertEqual(stats.total_won, 0)
        self.assertEqual(stats.bet_count, 1)

    def test_wheel_win(self):
        self.provider.queue_uniform(6)
        outcome = self.engine.place_bet(self.account.uuid, "wheel", 500, None)
        self.assertEqual(outcome.prize, 2500)
        self.assertEqual(self.engine.get_stats(self.account.uuid).total_won, 2500)

    def test_below_minimum_stake_leaves_account_untouched(self):
        self.provider.queue_uniform(6)
        with self.assertRaises(BelowMinimumError):
            self.engine.place_bet(self.account.uuid, "wheel", 99)
        self.assertEqual(self.provider.remaining, 1)
        self.assertEqual(self.engine.get_stats(self.account.uuid).bet_count, 0)
        self.assertEqual(self.engine.bet_history(self.account.uuid), [])

    def test_stake_above_balance_rejected(self):
        with self.assertRaises(InsufficientBalanceError):
            self.engine.place_bet(self.account.uuid, "slots", 10001)
        self.assertEqual(self.engine.get_stats(self.account.uuid).balance, 10000)

    def test_stake_equal_to_balance_allowed(self):
        self.provider.queue_uniform(LOSING_WHEEL_SEGMENT)
        outcome = self.engine.place_bet(self.account.uuid, "wheel", 10000)
        self.assertEqual(outcome.new_balance, 0)

    def test_invalid_game_and_input(self):
        with self.assertRaises(InvalidGameError):
            self.engine.place_bet(self.account.uuid, "poker", 100)
        with self.assertRaises(InvalidInputError):
            self.engine.place_bet(self.account.uuid, "numbers", 100, {"selected_number": 30})
        with self.assertRaises(InvalidInputError):
            self.engine.place_bet(self.account.uuid, "slots", "100")

    def test_stake_rules_are_reported_before_the_game(self):
        with self.assertRaises(BelowMinimumError):
            self.engine.place_bet(self.account.uuid, "poker", 50)
        with self.assertRaises(InsufficientBalanceError):
            self.engine.place_bet(self.account.uuid, "poker", 20000)
        with self.assertRaises(InsufficientBalanceError):
            self.engine.place_bet(self.account.uuid, "numbers", 20000, {"selected_number": 99})
        with self.assertRaises(AccountNotFoundError):
            self.engine.place_bet(uuid.uuid4(), "poker", 100)

    def test_unknown_and_inactive_accounts(self):
        with self.assertRaises(AccountNotFoundError):
            self.engine.place_bet(uuid.uuid4(), "slots", 100)
        self.engine.deactivate_account(self.account.uuid)
        with self.assertRaises(AccountInactiveError):
            self.engine.place_bet(self.account.uuid, "slots", 100)

    def test_resubmitted_bet_is_a_new_bet(self):
        self.provider.queue_uniform(LOSING_WHEEL_SEGMENT, LOSING_WHEEL_SEGMENT)
        first = self.engine.place_bet(self.account.uuid, "wheel", 100)
        second = self.engine.place_bet(self.account.uuid, "wheel", 100)
        self.assertNotEqual(first.record.id, second.record.id)
        self.assertEqual(self.engine.get_stats(self.account.uuid).balance, 9800)


class BetHistoryTest(SimpleTestCase):
    def setUp(self):
        self.engine, self.provider = make_engine()
        self.account = self.engine.open_account()
        self.other = self.engine.open_account()

    def _lose(self, account_id, count):
        self.provider.queue_uniform(*[LOSING_WHEEL_SEGMENT] * count)
        return [self.engine.place_bet(account_id, "wheel", 100).record for _ in range(count)]

    def test_history_capped_newest_first(self):
        placed = self._lose(self.account.uuid, 55)
        history = self.engine.bet_history(self.account.uuid)
        self.assertEqual(len(history), 50)
        self.assertEqual([r.id for r in history], [r.id for r in reversed(placed)][:50])

    def test_history_isolated_per_account(self):
        self._lose(self.account.uuid, 3)
        other_bets = self._lose(self.other.uuid, 2)
        history = self.engine.bet_history(self.other.uuid)
        self.assertEqual({r.id for r in history}, {r.id for r in other_bets})
        self.assertTrue(all(r.account_id == self.other.uuid for r in history))

    def test_limit_is_clamped_to_policy(self):
        self._lose(self.account.uuid, 55)
        self.assertEqual(len(self.engine.bet_history(self.account.uuid, limit=10)), 10)
        self.assertEqual(len(self.engine.bet_history(self.account.uuid, limit=500)), 50)

    def test_repeated_reads_are_identical(self):
        self._lose(self.account.uuid, 4)
        self.assertEqual(
            self.engine.bet_history(self.account.uuid), self.engine.bet_history(self.account.uuid)
        )
        self.assertEqual(self.engine.get_stats(self.account.uuid), self.engine.get_stats(self.account.uuid))

    def test_unknown_account_history(self):
        with self.assertRaises(AccountNotFoundError):
            self.engine.bet_history(uuid.uuid4())


class StorageFailureTest(SimpleTestCase):
    def test_bet_settled_but_unlogged(self):
        provider = ScriptedOutcomeProvider(uniform=[6])
        engine = WagerEngine(provider=provider, bets=BetLog(capacity=0))
        account = engine.open_account(opening_balance=1000)

        with self.assertLogs("wagers.stores.log", level="ERROR"):
            with self.assertRaises(RecordedButUnloggedError) as ctx:
                engine.place_bet(account.uuid, "wheel", 500)

        self.assertEqual(ctx.exception.outcome.prize, 2500)
        self.assertEqual(engine.get_stats(account.uuid).balance, 3000)
        self.assertEqual(engine.bet_history(account.uuid), [])
        self.assertEqual(len(engine.reconciliation), 1)

        engine.bets.capacity = None
        self.assertEqual(engine.reconcile(), 1)
        self.assertEqual(engine.bet_history(account.uuid), [ctx.exception.record])

    def test_transaction_unlogged_until_reconciled(self):
        engine = WagerEngine(
            provider=ScriptedOutcomeProvider(), transactions=TransactionLog(capacity=0)
        )
        account = engine.open_account(opening_balance=0)

        with self.assertRaises(RecordedButUnloggedError) as ctx:
            engine.deposit(account.uuid, 2000)

        self.assertIsInstance(ctx.exception, StorageFailureError)
        self.assertEqual(ctx.exception.outcome.new_balance, 2000)
        self.assertEqual(engine.reconcile(), 0)

        engine.transactions.capacity = 10
        self.assertEqual(engine.reconcile(), 1)
        self.assertEqual(len(engine.transaction_history(account.uuid)), 1)

    def test_withdrawal_append_failure_keeps_debit(self):
        engine, _ = make_engine()
        account = engine.open_account(opening_balance=5000)

        with patch.object(
            engine.transactions, "append", side_effect=StorageFailureError("disk full")
        ):
            with self.assertRaises(RecordedButUnloggedError) as ctx:
                engine.withdraw(account.uuid, 2000, DESTINATION)

        self.assertEqual(ctx.exception.context["record_id"], str(ctx.exception.record.id))
        self.assertEqual(engine.get_stats(account.uuid).balance, 3000)
        self.assertEqual(engine.reconcile(), 1)
        self.assertEqual(
            engine.transaction_detail(account.uuid, ctx.exception.record.id).status,
            TransactionRecord.Status.PENDING,
        )


# ============================================================
# Concurrency Tests
# ============================================================


class ConcurrencyTest(SimpleTestCase):
    def _run_parallel(self, fn, count, workers=16):
        def task(i):
            try:
                return fn(i)
            except WagerError as exc:
                return exc

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(task, range(count)))

    def test_parallel_bets_lose_no_updates(self):
        engine = WagerEngine(provider=SeededOutcomeProvider(2024))
        account = engine.open_account(opening_balance=100000)

        results = self._run_parallel(
            lambda i: engine.place_bet(account.uuid, "coin", 100, {"choice": "heads"}), 200
        )

        self.assertFalse([r for r in results if isinstance(r, Exception)])
        stats = engine.get_stats(account.uuid)
        self.assertEqual(stats.bet_count, 200)
        self.assertEqual(stats.total_staked, 200 * 100)
        self.assertEqual(stats.total_won, sum(r.prize for r in results))
        self.assertEqual(stats.balance, 100000 - stats.total_staked + stats.total_won)
        self.assertEqual(len(engine.bets), 200)

    def test_parallel_bets_cannot_overspend(self):
        engine, provider = make_engine()
        provider.queue_uniform(*[LOSING_WHEEL_SEGMENT] * 40)
        account = engine.open_account(opening_balance=1000)

        results = self._run_parallel(lambda i: engine.place_bet(account.uuid, "wheel", 100), 40)

        accepted = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, InsufficientBalanceError)]
        self.assertEqual(len(accepted), 10)
        self.assertEqual(len(rejected), 30)
        self.assertEqual(engine.get_stats(account.uuid).balance, 0)

    def test_parallel_withdrawals_cannot_overspend(self):
        engine, _ = make_engine()
        account = engine.open_account(opening_balance=5000)

        results = self._run_parallel(
            lambda i: engine.withdraw(account.uuid, 1000, DESTINATION), 12
        )

        self.assertEqual(sum(1 for r in results if not isinstance(r, Exception)), 5)
        self.assertEqual(engine.get_stats(account.uuid).balance, 0)
        self.assertEqual(len(engine.transaction_history(account.uuid)), 5)

    def test_other_accounts_are_not_blocked(self):
        engine, provider = make_engine()
        provider.queue_uniform(LOSING_WHEEL_SEGMENT)
        busy = engine.open_account()
        free = engine.open_account()
        done = threading.Event()

        def bet_on_free_account():
            engine.place_bet(free.uuid, "wheel", 100)
            done.set()

        with engine.accounts.locked(busy.uuid):
            worker = threading.Thread(target=bet_on_free_account)
            worker.start()
            self.assertTrue(done.wait(timeout=5))
        worker.join()

    def test_random_interleaving_never_goes_negative(self):
        rng = random.Random(99)
        engine = WagerEngine(provider=SeededOutcomeProvider(99))
        accounts = [engine.open_account(opening_balance=rng.choice([0, 500, 5000])) for _ in range(3)]
        expected = {a.uuid: a.balance for a in accounts}

        for _ in range(600):
            account_id = rng.choice(accounts).uuid
            op = rng.choice(["bet", "bet", "bet", "deposit", "withdraw"])
            try:
                if op == "bet":
                    game = rng.choice(["numbers", "slots", "wheel", "coin"])
                    data = {"selected_number": rng.randint(1, 25), "choice": rng.choice(["heads", "tails"])}
                    outcome = engine.place_bet(account_id, game, rng.randint(50, 3000), data)
                    expected[account_id] += outcome.prize - outcome.record.stake
                elif op == "deposit":
                    outcome = engine.deposit(account_id, rng.randint(500, 4000))
                    expected[account_id] += outcome.record.amount
                else:
                    outcome = engine.withdraw(account_id, rng.randint(500, 6000), DESTINATION)
                    expected[account_id] -= outcome.record.amount
            except WagerError:
                pass

            for account in accounts:
                self.assertGreaterEqual(engine.get_stats(account.uuid).balance, 0)

        for account in accounts:
            self.assertEqual(engine.get_stats(account.uuid).balance, expected[account.uuid])


# ============================================================
# Configuration Tests
# ============================================================


class PolicyTest(SimpleTestCase):
    @override_settings(WAGERS_MIN_STAKE=500, WAGERS_BET_HISTORY_LIMIT=10)
    def test_policy_from_settings(self):
        policy = WagerPolicy.from_settings()
        self.assertEqual(policy.min_stake, 500)
        self.assertEqual(policy.bet_history_limit, 10)
        self.assertEqual(policy.min_deposit, 1000)

    def test_get_engine_is_shared(self):
        set_engine(None)
        self.addCleanup(set_engine, None)
        self.assertIs(get_engine(), get_engine())
        self.assertEqual(get_engine().policy.welcome_bonus, 100000)


# ============================================================
# API Tests
# ============================================================


class APITestBase(SimpleTestCase):
    def setUp(self):
        self.client = APIClient()
        self.provider = ScriptedOutcomeProvider()
        self.engine = WagerEngine(provider=self.provider)
        set_engine(self.engine)
        self.addCleanup(set_engine, None)
        self.account = self.engine.open_account(opening_balance=10000)

    def url(self, name, *args):
        return reverse(name, args=[self.account.uuid, *args])


class AccountAPITest(APITestBase):
    def test_open_account(self):
        response = self.client.post(reverse("account-open"), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertIn("uuid", response.data)
        self.assertEqual(response.data["balance"], 100000)
        self.assertEqual(response.data["bet_count"], 0)

    def test_retrieve_account(self):
        response = self.client.get(self.url("account-detail"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["uuid"], str(self.account.uuid))

    def test_retrieve_nonexistent_account(self):
        response = self.client.get(reverse("account-detail", args=[uuid.uuid4()]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "ACCOUNT_NOT_FOUND")

    def test_balance(self):
        response = self.client.get(self.url("account-balance"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.data,
            {"balance": 10000, "total_staked": 0, "total_won": 0, "bet_count": 0},
        )

    def test_deactivated_account_cannot_bet(self):
        response = self.client.post(self.url("account-deactivate"), format="json")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["is_active"])

        response = self.client.post(
            self.url("bet-place"), {"game": "slots", "stake": 100}, format="json"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["code"], "ACCOUNT_INACTIVE")

    def test_health(self):
        response = self.client.get(reverse("health"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])


class FallbackErrorAPITest(APITestBase):
    def test_unknown_path_is_json(self):
        response = self.client.get("/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response["Content-Type"], "application/json")
        self.assertEqual(response.json()["code"], "NOT_FOUND")

    def test_malformed_account_id_is_json(self):
        response = self.client.get("/accounts/not-a-uuid/")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "NOT_FOUND")

    def test_unexpected_failure_is_json(self):
        client = APIClient(raise_request_exception=False)
        # No draws are queued, so resolving the bet fails.
        response = client.post(
            self.url("bet-place"), {"game": "wheel", "stake": 100}, format="json"
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response["Content-Type"], "application/json")
        self.assertEqual(response.json()["code"], "INTERNAL_ERROR")
        self.assertEqual(self.engine.get_stats(self.account.uuid).balance, 10000)

    def test_serializer_errors_are_english(self):
        response = self.client.post(
            self.url("account-deposit"), {"amount": "lots"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["amount"], ["A valid integer is required."])


class BetAPITest(APITestBase):
    def test_place_numbers_bet(self):
        self.provider.queue_uniform(6)
        response = self.client.post(
            self.url("bet-place"),
            {"game": "numbers", "stake": 100, "game_data": {"selected_number": 7}},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["bet"]["won"])
        self.assertEqual(response.data["bet"]["prize"], 2400)
        self.assertEqual(
            response.data["bet"]["outcome"], {"selected_number": 7, "winning_number": 7}
        )
        self.assertEqual(response.data["stats"]["balance"], 12300)

    def test_place_wheel_bet_without_game_data(self):
        self.provider.queue_uniform(LOSING_WHEEL_SEGMENT)
        response = self.client.post(
            self.url("bet-place"), {"game": "wheel", "stake": 500}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["bet"]["won"])
        self.assertEqual(response.data["bet"]["net_result"], -500)

    def test_invalid_game(self):
        response = self.client.post(
            self.url("bet-place"), {"game": "poker", "stake": 100}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "INVALID_GAME")
        self.assertEqual(response.data["context"], {"game": "poker"})

    def test_invalid_input(self):
        response = self.client.post(
            self.url("bet-place"),
            {"game": "coin", "stake": 100, "game_data": {"choice": "edge"}},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "INVALID_INPUT")

    def test_below_minimum_stake(self):
        response = self.client.post(
            self.url("bet-place"), {"game": "slots", "stake": 50}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "BELOW_MINIMUM")

    def test_below_minimum_reported_before_unknown_game(self):
        response = self.client.post(
            self.url("bet-place"), {"game": "poker", "stake": 50}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "BELOW_MINIMUM")

    def test_insufficient_balance(self):
        response = self.client.post(
            self.url("bet-place"), {"game": "slots", "stake": 20000}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "INSUFFICIENT_BALANCE")

    def test_non_integer_stake(self):
        response = self.client.post(
            self.url("bet-place"), {"game": "slots", "stake": "lots"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_bet_on_nonexistent_account(self):
        response = self.client.post(
            reverse("bet-place", args=[uuid.uuid4()]),
            {"game": "slots", "stake": 100},
            format="json",
        )
        self.assertEqual(response.status_code, 404)

    def test_bet_history(self):
        self.provider.queue_uniform(LOSING_WHEEL_SEGMENT, 6)
        self.client.post(self.url("bet-place"), {"game": "wheel", "stake": 100}, format="json")
        self.client.post(self.url("bet-place"), {"game": "wheel", "stake": 200}, format="json")

        response = self.client.get(self.url("bet-history"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([b["stake"] for b in response.data], [200, 100])

        response = self.client.get(self.url("bet-history"), {"limit": 1})
        self.assertEqual(len(response.data), 1)

    def test_unlogged_bet_is_reported(self):
        self.engine.bets.capacity = 0
        self.provider.queue_uniform(6)
        response = self.client.post(
            self.url("bet-place"), {"game": "wheel", "stake": 100}, format="json"
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "RECORDED_BUT_UNLOGGED")
        self.assertEqual(response.data["stats"]["balance"], 10400)


class ReconcileAPITest(APITestBase):
    def setUp(self):
        super().setUp()
        self.engine.bets.capacity = 0
        self.provider.queue_uniform(6)
        self.client.post(self.url("bet-place"), {"game": "wheel", "stake": 100}, format="json")

    @override_settings(WAGERS_MAINTENANCE_TOKEN="s3cret")
    def test_reconcile_appends_queued_records(self):
        self.engine.bets.capacity = None
        response = self.client.post(
            reverse("reconcile"), format="json", HTTP_X_MAINTENANCE_TOKEN="s3cret"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"reconciled": 1, "pending": 0})
        self.assertEqual(len(self.engine.bet_history(self.account.uuid)), 1)

    @override_settings(WAGERS_MAINTENANCE_TOKEN="s3cret")
    def test_reconcile_reports_what_is_still_pending(self):
        response = self.client.post(
            reverse("reconcile"), format="json", HTTP_X_MAINTENANCE_TOKEN="s3cret"
        )
        self.assertEqual(response.data, {"reconciled": 0, "pending": 1})

    @override_settings(WAGERS_MAINTENANCE_TOKEN="s3cret")
    def test_reconcile_rejects_wrong_token(self):
        response = self.client.post(
            reverse("reconcile"), format="json", HTTP_X_MAINTENANCE_TOKEN="guess"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(len(self.engine.reconciliation), 1)

    @override_settings(WAGERS_MAINTENANCE_TOKEN=None)
    def test_reconcile_closed_without_configured_token(self):
        response = self.client.post(reverse("reconcile"), format="json")
        self.assertEqual(response.status_code, 403)


class DepositAPITest(APITestBase):
    def test_deposit_success(self):
        response = self.client.post(self.url("account-deposit"), {"amount": 1000}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["stats"]["balance"], 11000)
        self.assertEqual(response.data["transaction"]["amount"], 1000)
        self.assertEqual(response.data["transaction"]["status"], "COMPLETED")

    def test_deposit_below_minimum(self):
        response = self.client.post(self.url("account-deposit"), {"amount": 999}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "BELOW_MINIMUM")
        self.assertEqual(self.engine.get_stats(self.account.uuid).balance, 10000)

    def test_deposit_missing_amount(self):
        response = self.client.post(self.url("account-deposit"), {}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_deposit_nonexistent_account(self):
        response = self.client.post(
            reverse("account-deposit", args=[uuid.uuid4()]), {"amount": 1000}, format="json"
        )
        self.assertEqual(response.status_code, 404)


class WithdrawAPITest(APITestBase):
    def test_withdraw_success(self):
        response = self.client.post(
            self.url("account-withdraw"), {"amount": 3000, **DESTINATION}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["transaction"]["status"], "PENDING")
        self.assertEqual(response.data["transaction"]["destination"], DESTINATION)
        self.assertEqual(response.data["stats"]["balance"], 7000)

    def test_withdraw_missing_destination(self):
        response = self.client.post(
            self.url("account-withdraw"), {"amount": 3000}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "MISSING_DESTINATION")

    def test_withdraw_insufficient_balance(self):
        response = self.client.post(
            self.url("account-withdraw"), {"amount": 30000, **DESTINATION}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "INSUFFICIENT_BALANCE")
        self.assertEqual(self.engine.transaction_history(self.account.uuid), [])

    def test_insufficient_balance_reported_before_missing_destination(self):
        response = self.client.post(
            self.url("account-withdraw"), {"amount": 50000}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "INSUFFICIENT_BALANCE")


class TransactionAPITest(APITestBase):
    def setUp(self):
        super().setUp()
        self.engine.deposit(self.account.uuid, 10000)
        self.engine.deposit(self.account.uuid, 5000)
        self.engine.withdraw(self.account.uuid, 3000, DESTINATION)

    def test_list_transactions(self):
        response = self.client.get(self.url("account-transactions"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 3)
        self.assertEqual(response.data[0]["transaction_type"], "WITHDRAWAL")

    def test_filter_by_status(self):
        response = self.client.get(self.url("account-transactions"), {"status": "PENDING"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

    def test_filter_by_type(self):
        response = self.client.get(self.url("account-transactions"), {"type": "DEPOSIT"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 2)

    def test_transaction_detail(self):
        record = self.engine.transaction_history(self.account.uuid)[0]
        response = self.client.get(self.url("transaction-detail", record.id))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["id"], str(record.id))

    def test_transaction_detail_of_other_account(self):
        record = self.engine.transaction_history(self.account.uuid)[0]
        other = self.engine.open_account()
        response = self.client.get(reverse("transaction-detail", args=[other.uuid, record.id]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "RECORD_NOT_FOUND")


class LoggingMiddlewareTest(SimpleTestCase):
    def test_payout_details_are_masked(self):
        body = json.dumps({"transaction": {"destination": DESTINATION, "amount": 1000}})
        masked = json.loads(_redact(body))
        self.assertEqual(masked["transaction"]["destination"]["iban"], "***")
        self.assertEqual(masked["transaction"]["amount"], 1000)

    def test_non_json_body_passes_through(self):
        self.assertEqual(_redact("amount=1000"), "amount=1000")
