"""
异常定义
"""


class SSLProbeError(Exception):
    """SSL探针基础异常"""


class ConfigurationError(SSLProbeError):
    """配置无效（在应用配置时抛出，不会进入检查流程）"""


class SiteSourceError(SSLProbeError):
    """无法查询站点/主机名来源"""
