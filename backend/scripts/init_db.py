#!/usr/bin/env python3
"""
数据库初始化脚本 - 创建所有表
"""

import asyncio
import sys
from pathlib import Path

# 添加项目根目录到路径
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from hwboard.common.base import Base
from hwboard.common.config import settings
from hwboard.common.database import db_manager


async def init_database():
    """初始化数据库 - 创建所有表"""
    print(f"🔧 Initializing {settings.database_type} database...")

    await db_manager.initialize()
    await db_manager.create_tables()

    print("✅ All tables created successfully!")

    print("\n📋 Created tables:")
    for table in sorted(Base.metadata.tables.keys()):
        print(f"  - {table}")

    await db_manager.dispose()


if __name__ == "__main__":
    asyncio.run(init_database())
