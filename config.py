"""
应用配置 - 服务地址、调试模式和日志
"""
import os

# 服务配置
HOST = os.getenv('AHP_HOST', '127.0.0.1')
PORT = int(os.getenv('AHP_PORT', '8050'))
DEBUG = os.getenv('AHP_DEBUG', 'False') == 'True'

# 日志配置
LOG_LEVEL = os.getenv('AHP_LOG_LEVEL', 'INFO').upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
