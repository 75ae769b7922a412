"""平台通用能力：异常、日志、配置与指标。"""
