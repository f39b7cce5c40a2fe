from decimal import Decimal

from viandas import models


def test_price_rounding_regression(db_session, order_service):
    # Guard against regressions: 2-decimal rounding half up
    user = models.User(name="Dana", email="dana@example.com", password_hash="x")
    db_session.add(user)
    db_session.commit()
    order = order_service.create({"client": "Dana", "size": "small", "price": Decimal("2.675")}, user_id=user.id)
    assert str(order.price) == "2.68"  # 2.675 rounds to 2.68 with HALF_UP
