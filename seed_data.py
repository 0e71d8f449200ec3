#!/usr/bin/env python3
"""
Seed Data Script for Dashboard Feedback

Creates a small analytics organisation for local development:
- 1 Admin (Alice)
- 2 Data science teams (Forecasting, Growth Analytics), each with a lead
- 3 Business users (Dana, Evan, Fiona)
- 3 Dashboards with charts, two of them assigned to a team
- 2 Threads: one pending, one seconded by another business user

Every user's password is "Passw0rd!".

Run with: python seed_data.py
"""

import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dashboard_feedback.core.config import get_settings
from dashboard_feedback.core.security import hash_password
from dashboard_feedback.models import (
    Base,
    Chart,
    Dashboard,
    Issue,
    IssueStatus,
    Team,
    ThreadSecond,
    User,
    UserRole,
)

settings = get_settings()

DEFAULT_PASSWORD = "Passw0rd!"


async def seed_database():
    """Main seeding function."""

    engine = create_async_engine(settings.database_url_async, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    password_hash = hash_password(DEFAULT_PASSWORD)

    async with async_session() as session:
        print("🌱 Starting database seed...")

        result = await session.execute(text("SELECT COUNT(*) FROM users"))
        count = result.scalar()
        if count and count > 0:
            print("⚠️  Database already has data. Clearing existing data...")
            await clear_database(session)

        # =================================================================
        # CREATE TEAMS
        # =================================================================
        print("\n📦 Creating teams...")

        forecasting = Team(name="Forecasting", description="Demand and revenue forecasts")
        growth = Team(name="Growth Analytics", description="Acquisition and retention funnels")
        session.add_all([forecasting, growth])
        await session.flush()
        print(f"   ✓ {forecasting.name}")
        print(f"   ✓ {growth.name}")

        # =================================================================
        # CREATE USERS
        # =================================================================
        print("\n👥 Creating users...")

        def user(name: str, email: str, role: UserRole, team: Team | None = None) -> User:
            return User(
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                team_id=team.id if team else None,
            )

        alice = user("Alice Admin", "alice@example.com", UserRole.ADMIN)
        bob = user("Bob Nguyen", "bob@example.com", UserRole.DATA_SCIENCE, forecasting)
        carol = user("Carol Singh", "carol@example.com", UserRole.DATA_SCIENCE, forecasting)
        greg = user("Greg Okafor", "greg@example.com", UserRole.DATA_SCIENCE, growth)
        dana = user("Dana Ruiz", "dana@example.com", UserRole.BUSINESS)
        evan = user("Evan Brooks", "evan@example.com", UserRole.BUSINESS)
        fiona = user("Fiona Walsh", "fiona@example.com", UserRole.BUSINESS)

        session.add_all([alice, bob, carol, greg, dana, evan, fiona])
        await session.flush()

        forecasting.lead_user_id = bob.id
        growth.lead_user_id = greg.id
        for u in (alice, bob, carol, greg, dana, evan, fiona):
            print(f"   ✓ {u.name} ({u.role.value})")

        # =================================================================
        # CREATE DASHBOARDS AND CHARTS
        # =================================================================
        print("\n📊 Creating dashboards...")

        revenue = Dashboard(
            name="Weekly Revenue", owner_id=alice.id, assigned_team_id=forecasting.id
        )
        funnel = Dashboard(
            name="Signup Funnel", owner_id=alice.id, assigned_team_id=growth.id
        )
        ops = Dashboard(name="Warehouse Ops", owner_id=alice.id)
        session.add_all([revenue, funnel, ops])
        await session.flush()

        charts = [
            Chart(dashboard_id=revenue.id, name="Revenue by Region"),
            Chart(dashboard_id=revenue.id, name="Forecast vs Actual"),
            Chart(dashboard_id=funnel.id, name="Conversion by Step"),
            Chart(dashboard_id=ops.id, name="Orders Shipped"),
        ]
        session.add_all(charts)
        await session.flush()
        for d in (revenue, funnel, ops):
            print(f"   ✓ {d.name}")

        # =================================================================
        # CREATE THREADS
        # =================================================================
        print("\n🧵 Creating threads...")

        mismatch = Issue(
            dashboard_id=revenue.id,
            chart_id=charts[1].id,
            submitted_by_user_id=dana.id,
            subject="Forecast line stops at last month",
            description="The forecast series ends one month early since the last refresh.",
            status=IssueStatus.PENDING,
            priority=1,
            assigned_team_id=revenue.assigned_team_id,
        )
        drop = Issue(
            dashboard_id=funnel.id,
            chart_id=charts[2].id,
            submitted_by_user_id=evan.id,
            subject="Step 3 conversion dropped to zero",
            description="Conversion for step 3 shows 0% for the last two days.",
            status=IssueStatus.PENDING,
            priority=1,
            assigned_team_id=funnel.assigned_team_id,
        )
        session.add_all([mismatch, drop])
        await session.flush()

        session.add(ThreadSecond(issue_id=drop.id, user_id=fiona.id))
        drop.priority = 1
        print(f"   ✓ {mismatch.subject} [pending]")
        print(f"   ✓ {drop.subject} [pending, seconded by {fiona.name}]")

        await session.commit()

    await engine.dispose()

    print("\n" + "=" * 60)
    print("✅ DATABASE SEEDED SUCCESSFULLY!")
    print("=" * 60)
    print(f"""
📊 Summary:
   • 7 Users: 1 admin, 3 data science, 3 business
   • 2 Teams: Forecasting (lead Bob), Growth Analytics (lead Greg)
   • 3 Dashboards, 4 Charts
   • 2 Threads

🔑 Log in with any seeded email and password "{DEFAULT_PASSWORD}"
""")


async def clear_database(session: AsyncSession):
    """Clear all data from the database (in correct order for FK constraints)."""
    await session.execute(text("UPDATE teams SET lead_user_id = NULL"))
    tables = [
        "leaderboard_activity",
        "notifications",
        "comments",
        "thread_seconds",
        "admin_requests",
        "issues",
        "charts",
        "dashboards",
        "users",
        "teams",
    ]

    for table in tables:
        await session.execute(text(f"DELETE FROM {table}"))

    await session.commit()
    print("   ✓ Cleared existing data")


if __name__ == "__main__":
    asyncio.run(seed_database())
