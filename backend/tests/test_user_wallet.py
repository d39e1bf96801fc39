"""
UserWallet: $inc grants and the single conditional coin debit.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from services.user_wallet import UserNotFoundError, UserWallet

pytestmark = pytest.mark.asyncio


def _mock_db(matched=1, modified=1):
    db = MagicMock()
    db.users.update_one = AsyncMock(return_value=MagicMock(matched_count=matched, modified_count=modified))
    db.spin_status.update_one = AsyncMock(return_value=MagicMock(matched_count=0, modified_count=0))
    return db


async def test_add_coins_uses_increment():
    db = _mock_db()

    await UserWallet(db).add_coins("u1", 500)

    query, update = db.users.update_one.call_args.args
    assert query == {"user_id": "u1"}
    assert update["$inc"] == {"coins": 500}


async def test_add_coins_unknown_user_raises():
    db = _mock_db(matched=0, modified=0)

    with pytest.raises(UserNotFoundError):
        await UserWallet(db).add_coins("ghost", 500)


@pytest.mark.parametrize("amount", [0, -5])
async def test_add_coins_rejects_non_positive(amount):
    with pytest.raises(ValueError):
        await UserWallet(_mock_db()).add_coins("u1", amount)


async def test_add_spins_upserts_spin_status():
    db = _mock_db()

    await UserWallet(db).add_purchased_spins("u1", 10)

    call = db.spin_status.update_one.call_args
    assert call.args[0] == {"user_id": "u1"}
    assert call.args[1]["$inc"] == {"purchased_spins_remaining": 10}
    assert call.kwargs["upsert"] is True


async def test_debit_is_a_single_conditional_update():
    db = _mock_db()
    db.users.find_one = AsyncMock()

    debited = await UserWallet(db).debit_coins_if_sufficient("u1", 200)

    assert debited is True
    query, update = db.users.update_one.call_args.args
    assert query == {"user_id": "u1", "coins": {"$gte": 200}}
    assert update["$inc"] == {"coins": -200}
    db.users.find_one.assert_not_called()


async def test_debit_returns_false_when_precondition_fails():
    db = _mock_db(matched=0, modified=0)

    assert await UserWallet(db).debit_coins_if_sufficient("u1", 200) is False


async def test_debit_against_in_memory_store(db):
    db.users.docs.append({"user_id": "u1", "coins": 250})
    wallet = UserWallet(db)

    assert await wallet.debit_coins_if_sufficient("u1", 200) is True
    assert await wallet.debit_coins_if_sufficient("u1", 200) is False
    assert await wallet.get_coin_balance("u1") == 50


async def test_get_coin_balance_missing_user(db):
    assert await UserWallet(db).get_coin_balance("nobody") is None


async def test_get_coin_balance_defaults_to_zero(db):
    db.users.docs.append({"user_id": "u1"})

    assert await UserWallet(db).get_coin_balance("u1") == 0
