"""CLI entry point: python main.py --user demo-user --delay 2"""

import argparse
import asyncio

from src.care_notifications import (
    AsyncioNotificationPlatform,
    DeviceType,
    IntervalTrigger,
    NotificationCategory,
    NotificationRequest,
    NotificationService,
    format_relative_time,
)
from src.logging_config import LoggingConfig, configure_logging
from src.settings import get_settings


async def run(user_id: str, delay: int, device: DeviceType) -> None:
    settings = get_settings()
    configure_logging(LoggingConfig.from_settings(settings))

    platform = AsyncioNotificationPlatform(device_type=device)
    service = NotificationService.from_settings(platform, settings)
    service.attach_user(user_id)

    token = await service.registrar.register_for_push_notifications()
    print(f"Push identity: {token}")

    await service.scheduler.send_chat_notification("Nurse Joy", "How are you feeling?", "conv-1")
    await service.scheduler.send_chat_notification("Nurse Joy", "Please reply when you can", "conv-1")
    await service.scheduler.schedule_daily_medication("Aspirin", "100mg", 9, 0)
    await service.scheduler.send_emergency_notification("Mr. Smith", "Fall")

    await service.scheduler.schedule_notification(
        NotificationRequest(
            category=NotificationCategory.APPOINTMENT,
            title="Appointment Reminder",
            body="Check-in with Dr. Patel",
        ),
        IntervalTrigger(seconds=delay),
    )

    await asyncio.sleep(delay + 0.5)

    print("\nHistory:")
    for record in await service.history.load_notification_history(user_id):
        marker = " " if record.read else "*"
        print(f" {marker} [{record.category.value:<11}] {record.title}: {record.body} "
              f"({format_relative_time(record.received_at)})")

    pending = await service.scheduler.get_scheduled_notifications()
    print(f"\nStill scheduled: {len(pending)}")

    await service.scheduler.cancel_all_notifications()
    await service.close()


def main():
    parser = argparse.ArgumentParser(
        description="CareLink - notification lifecycle demo"
    )
    parser.add_argument(
        "--user", default="demo-user",
        help="User id whose history is written"
    )
    parser.add_argument(
        "--delay", type=int, default=2,
        help="Seconds before the delayed reminder fires"
    )
    parser.add_argument(
        "--device", choices=[d.value for d in DeviceType], default=DeviceType.ANDROID.value,
        help="Device type reported to the backend"
    )
    args = parser.parse_args()

    asyncio.run(run(args.user, args.delay, DeviceType(args.device)))


if __name__ == "__main__":
    main()
