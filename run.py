#!/usr/bin/env python
"""
启动脚本 - AHP决策分析服务
"""

import sys

from app import server
from config import DEBUG, HOST, PORT
from database.engine import init_database

if __name__ == '__main__':
    print("=" * 60)
    print("AHP决策分析服务")
    print("=" * 60)
    print("\n启动信息:")
    print(f"  - 访问地址: http://{HOST}:{PORT}/api")
    print(f"  - 调试模式: {'已开启' if DEBUG else '已关闭'}")
    print(f"  - Python版本: {sys.version.split()[0]}")
    print("\n按 Ctrl+C 停止服务器")
    print("=" * 60)
    print()

    init_database()

    server.run(
        debug=DEBUG,
        host=HOST,
        port=PORT
    )
