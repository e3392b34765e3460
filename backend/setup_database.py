# setup_database.py
import asyncio
import sys
import uuid
from pathlib import Path

# Add the project root to Python path
sys.path.append(str(Path(__file__).parent))

# Fixed id so local clients can send it as X-User-Id
DEV_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
DEV_USER_EMAIL = "dev@leadfinder.local"


async def setup_database():
    """Create all tables and seed the development user"""
    try:
        print("🔧 Step 1: Importing core modules...")
        from sqlalchemy import select, text

        from leadfinder.core.config import settings
        from leadfinder.core.database import engine, AsyncSessionLocal
        print("✅ Core modules imported")

        print("🔧 Step 2: Testing database connection...")
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT version()"))
            print(f"✅ Connected: {result.scalar()}")

        print("🔧 Step 3: Importing models...")
        from leadfinder.models.base import Base
        from leadfinder.models.user import User
        from leadfinder.models.leads import Lead  # noqa: F401
        from leadfinder.models.search_jobs import SearchJob  # noqa: F401
        print("✅ Models imported")

        print("🔧 Step 4: Creating tables...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        print(f"✅ Tables created: {sorted(Base.metadata.tables)}")

        print("🔧 Step 5: Creating development user...")
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(User).where(User.id == DEV_USER_ID))
            if result.scalar_one_or_none():
                print("⚠️  Development user already exists")
            else:
                session.add(
                    User(
                        id=DEV_USER_ID,
                        email=DEV_USER_EMAIL,
                        full_name="Lead Finder Dev",
                        is_active=True,
                        company="Lead Finder",
                    )
                )
                await session.commit()
                print("✅ Development user created!")
            print(f"🔑 X-User-Id: {DEV_USER_ID}")

        print(f"\n🎉 Database setup completed ({settings.PROJECT_NAME}, provider: {settings.SCRAPER_PROVIDER})")
        await engine.dispose()

    except ImportError as e:
        print(f"❌ Import error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Setup error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(setup_database())
