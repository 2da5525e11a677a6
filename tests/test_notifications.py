import pytest

from coffeeshop import tasks
from coffeeshop.services.notifications import (
    MockNotificationService,
    get_notification_service,
    reset_notification_service,
)


@pytest.fixture
def outbox():
    reset_notification_service()
    service = get_notification_service()
    assert isinstance(service, MockNotificationService)
    yield service.outbox
    reset_notification_service()


async def test_order_confirmation_template():
    service = MockNotificationService()
    result = await service.send_order_confirmation(
        "an.nguyen@mail.com", "An", "order-1", 173000, "deliver", "12 Le Loi"
    )

    assert result.success
    [email] = service.outbox
    assert "order-1" in email["html"]
    assert "173,000 VND" in email["html"]
    assert "12 Le Loi" in email["html"]


async def test_pickup_confirmation_has_no_address():
    service = MockNotificationService()
    await service.send_order_confirmation("an.nguyen@mail.com", "An", "order-1", 50000, "pickup")
    assert "Pickup at the counter" in service.outbox[0]["html"]


async def test_simulated_failure():
    service = MockNotificationService(failure_rate=1.0)
    result = await service.send_email("an.nguyen@mail.com", "Hi", "<p>Hi</p>")
    assert not result.success
    assert service.outbox == []


def test_reset_otp_task_sends_code(outbox):
    result = tasks.send_password_reset_otp.apply(args=["an.nguyen@mail.com", "An", "482913"]).get()

    assert result["success"] is True
    assert result["provider"] == "mock"
    assert "482913" in outbox[0]["text"]


def test_login_notice_task(outbox):
    tasks.send_login_notice.apply(args=["an.nguyen@mail.com", "An", "2024-01-01 08:00:00"]).get()
    assert "2024-01-01 08:00:00" in outbox[0]["html"]


def test_health_check_task():
    assert tasks.health_check.apply().get()["status"] == "healthy"
