"""Tests for PortfolioService: buy, sell and list."""

from datetime import datetime, timedelta, timezone

import pytest

from matchfolio.exceptions import (
    InsufficientHoldingsError,
    PortfolioEntryNotFoundError,
    PortfolioValidationError,
    UserNotFoundError,
)
from matchfolio.schemas.portfolio import Transaction, TransactionType
from matchfolio.services.portfolio_service import PortfolioService


@pytest.fixture
def service(user_store) -> PortfolioService:
    user_store.create_user("u1")
    return PortfolioService(user_store)


class TestBuy:
    def test_first_buy_creates_entry(self, service, user_store):
        user = service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=5, player_name="Ace")

        entry = user.find_entry("M1", "p1")
        assert entry.current_holdings == 5.0
        assert entry.initial_price == 10.0
        assert entry.player_name == "Ace"
        assert [t.type for t in entry.transactions] == [TransactionType.BUY]
        assert user_store.get_user("u1").find_entry("M1", "p1").current_holdings == 5.0

    def test_explicit_initial_price(self, service):
        user = service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=1, initial_price=8.0)
        assert user.find_entry("M1", "p1").initial_price == 8.0

    def test_second_buy_updates_in_place(self, service):
        service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=5)
        user = service.buy("u1", "M1", "p1", team="Home", price=11.0, quantity=2)

        assert len(user.portfolio) == 1
        entry = user.portfolio[0]
        assert entry.current_holdings == 7.0
        assert entry.initial_price == 10.0
        assert len(entry.transactions) == 2

    def test_same_player_other_match_is_new_entry(self, service):
        service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=1)
        user = service.buy("u1", "M2", "p1", team="Home", price=10.0, quantity=1)
        assert len(user.portfolio) == 2

    def test_unknown_user(self, service):
        with pytest.raises(UserNotFoundError):
            service.buy("ghost", "M1", "p1", team="Home", price=1.0, quantity=1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"match_id": ""},
            {"player_id": None},
            {"team": ""},
            {"price": None},
            {"quantity": 0},
            {"quantity": -1},
            {"quantity": "many"},
            {"price": float("nan")},
            {"price": -1.0},
        ],
    )
    def test_validation(self, service, kwargs):
        args = {
            "user_id": "u1",
            "match_id": "M1",
            "player_id": "p1",
            "team": "Home",
            "price": 1.0,
            "quantity": 1,
        }
        args.update(kwargs)
        with pytest.raises(PortfolioValidationError):
            service.buy(**args)


class TestSell:
    def test_sell_reduces_holdings(self, service):
        service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=5)

        user = service.sell("u1", "M1", "p1", price=12.345, quantity=2, auto_sold=True, reason="stop loss")

        entry = user.find_entry("M1", "p1")
        assert entry.current_holdings == 3.0
        sell = entry.transactions[-1]
        assert sell.type == TransactionType.SELL
        assert sell.price == 12.35
        assert sell.auto_sold is True
        assert sell.reason == "stop loss"

    def test_sell_everything_keeps_entry(self, service, user_store):
        service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=5)
        service.sell("u1", "M1", "p1", price=10.0, quantity=5)

        entry = user_store.get_user("u1").find_entry("M1", "p1")
        assert entry is not None
        assert entry.current_holdings == 0.0
        assert len(entry.transactions) == 2

    def test_oversell_rejected(self, service, user_store):
        service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=2)

        with pytest.raises(InsufficientHoldingsError) as exc_info:
            service.sell("u1", "M1", "p1", price=10.0, quantity=3)

        assert exc_info.value.available == 2.0
        entry = user_store.get_user("u1").find_entry("M1", "p1")
        assert entry.current_holdings == 2.0
        assert len(entry.transactions) == 1

    def test_sell_unknown_entry(self, service):
        with pytest.raises(PortfolioEntryNotFoundError):
            service.sell("u1", "M1", "p1", price=1.0, quantity=1)

    def test_sell_unknown_user(self, service):
        with pytest.raises(UserNotFoundError):
            service.sell("ghost", "M1", "p1", price=1.0, quantity=1)

    def test_sell_legacy_string_holdings(self, service, user_store):
        user_store.put_raw(
            {
                "userId": "u2",
                "portfolio": [{"matchId": "M1", "playerId": "p1", "currentHoldings": "4"}],
            }
        )
        user = service.sell("u2", "M1", "p1", price=1.0, quantity=4)
        assert user.find_entry("M1", "p1").current_holdings == 0.0


class TestGetPortfolio:
    def test_transactions_newest_first(self, service, user_store):
        service.buy("u1", "M1", "p1", team="Home", price=10.0, quantity=1)
        user = user_store.get_user("u1")
        old = Transaction(
            type="buy",
            quantity=1,
            price=9.0,
            timestamp=datetime.now(timezone.utc) - timedelta(days=1),
        )
        user.portfolio[0].transactions.append(old)
        user_store.save_user(user)

        entries = service.get_portfolio("u1")

        stamps = [t.timestamp for t in entries[0].transactions]
        assert stamps == sorted(stamps, reverse=True)

    def test_unknown_user(self, service):
        with pytest.raises(UserNotFoundError):
            service.get_portfolio("ghost")
