"""
监控框架探针入口点
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError
from .interfaces import ProbeInterface, SiteSourceInterface, SSLCertificateCheckerInterface
from .models import ProbeSeverity, ProbeStatus
from .services.aggregator import CertificateAggregator
from .services.config_validator import ConfigValidator, ProbeConfig
from .services.logger import LoggerService
from .services.site_source import EnvSiteSource


class SSLCheckProbe(ProbeInterface):
    """SSL证书探针"""
    
    def __init__(self, site_source: SiteSourceInterface,
                 checker: Optional[SSLCertificateCheckerInterface] = None,
                 config: Optional[ProbeConfig] = None):
        """
        初始化探针
        
        Args:
            site_source: 站点来源
            checker: 证书检查器，为None时按配置的超时时间创建
            config: 初始配置，为None时使用默认配置
        """
        self.site_source = site_source
        self.aggregator = CertificateAggregator(checker)
        self.config_validator = ConfigValidator()
        self._config = config or ProbeConfig()
    
    @property
    def config(self) -> ProbeConfig:
        return self._config
    
    def name(self) -> str:
        return "SSLCheck"
    
    def description(self) -> str:
        return "Checking the SSL certificates are valid and are not going to expire"
    
    def default_severity(self) -> ProbeSeverity:
        return ProbeSeverity.HIGH
    
    def configure(self, options: Dict[str, Any]) -> None:
        """
        应用配置选项
        
        解析失败时抛出异常，原配置保持不变。
        
        Args:
            options: 配置选项
        
        Raises:
            ConfigurationError: 配置值无效
        """
        self._config = self.config_validator.parse_options(options, base=self._config)
    
    def status(self) -> ProbeStatus:
        """
        执行一次检查
        
        Returns:
            ProbeStatus: 探针状态
        """
        # 整个运行只使用这一份配置快照
        config = self._config
        return self.aggregator.run_check(self.site_source, config)


def probe_handler(event: Optional[Dict[str, Any]], context: Any) -> Dict[str, Any]:
    """
    监控框架调用入口
    
    Args:
        event: 触发事件，可包含 options 配置字典
        context: 运行时上下文
    
    Returns:
        dict: 探针状态
    """
    logger_service = LoggerService()
    event = event or {}
    
    try:
        probe = SSLCheckProbe(EnvSiteSource())
        probe.configure(event.get('options') or {})
    except ConfigurationError as e:
        logger_service.logger.error(f"探针配置无效: {str(e)}")
        return {
            'statusCode': 400,
            'body': {
                'message': 'SSL certificate probe configuration is invalid',
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }
    
    logger_service.log_configuration_info(
        probe.config_validator.get_configuration_summary(probe.config)
    )
    
    try:
        status = probe.status()
    except Exception as e:
        logger_service.logger.error(f"探针执行时发生严重错误: {str(e)}", exc_info=e)
        return {
            'statusCode': 500,
            'body': {
                'message': 'SSL certificate probe encountered a critical error',
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }
    
    if status.is_healthy:
        logger_service.logger.info(f"探针状态正常: {status.message}")
    else:
        logger_service.logger.warning(f"探针状态降级: {status.message}")
    
    return {
        'statusCode': 200,
        'body': {
            'name': probe.name(),
            'severity': probe.default_severity().value,
            **status.to_dict(),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
    }
