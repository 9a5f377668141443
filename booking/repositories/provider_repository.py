from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import noload

from booking.models.provider import DayOfWeek, Provider, ProviderSchedule, WeeklySchedule


class ProviderRepository:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def find_provider_with_schedule(self, provider_id: str) -> Provider | None:
        async with self._session_maker() as session:
            result = await session.execute(select(Provider).where(Provider.id == provider_id))
            return result.scalar_one_or_none()

    async def upsert_schedule(
        self,
        provider_id: str,
        weekly_schedule: WeeklySchedule,
        timezone: str,
        appointment_duration: int,
    ) -> Provider:
        """Create or update the provider and replace its weekly schedule in one transaction."""
        windows = {DayOfWeek(day): window for day, window in weekly_schedule.items()}
        days = list(windows)
        async with self._session_maker() as session:
            provider = await session.get(Provider, provider_id, options=[noload(Provider.schedules)])
            if provider is None:
                provider = Provider(
                    id=provider_id, timezone=timezone, appointment_duration=appointment_duration
                )
            else:
                provider.timezone = timezone
                provider.appointment_duration = appointment_duration
            session.add(provider)
            await session.flush()

            # Days missing from the input are no longer worked
            await session.execute(
                delete(ProviderSchedule).where(
                    ProviderSchedule.provider_id == provider_id,
                    ProviderSchedule.day_of_week.not_in(days),
                )
            )
            existing = await session.execute(
                select(ProviderSchedule).where(ProviderSchedule.provider_id == provider_id)
            )
            by_day = {row.day_of_week: row for row in existing.scalars().all()}
            for day in days:
                window = windows[day]
                row = by_day.get(day)
                if row is None:
                    row = ProviderSchedule(provider_id=provider_id, day_of_week=day)
                row.start_time = window.start
                row.end_time = window.end
                session.add(row)
            await session.commit()

            # Reload so the returned provider carries the fresh schedule list
            session.expunge_all()
            result = await session.execute(select(Provider).where(Provider.id == provider_id))
            return result.scalar_one()
