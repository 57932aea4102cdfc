"""
证书检查汇总服务
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..exceptions import SiteSourceError
from ..interfaces import SiteSourceInterface, SSLCertificateCheckerInterface
from ..models import (
    CertificateCheckResult,
    CheckOutcome,
    Health,
    ProbeStatus,
    Site,
    SiteFailureGroup,
)
from .config_validator import ProbeConfig
from .expiry_calculator import ExpiryCalculator
from .logger import LoggerService
from .ssl_checker import SSLCertificateChecker


LOOPBACK_HOSTNAME = "localhost"

VALID_MESSAGE = "SSL certificates are valid"
SOURCE_FAILURE_MESSAGE = "Impossible to check the SSL certificates"
INVALID_MESSAGE_TEMPLATE = (
    "The following certificates are invalid or are going to expire in less than {nb_days} days: {groups}"
)


class CertificateAggregator:
    """
    证书检查汇总器
    
    对所有站点的主机名执行证书检查，按站点汇总失败的主机名，生成一个整体健康状态。
    汇总器本身不保存运行状态，可以被并发调用。
    """
    
    def __init__(self, checker: Optional[SSLCertificateCheckerInterface] = None):
        """
        初始化汇总器
        
        Args:
            checker: 证书检查器；为None时每次运行按配置的超时时间创建
        """
        self.checker = checker
    
    def run_check(self, site_source: SiteSourceInterface, config: ProbeConfig) -> ProbeStatus:
        """
        查询站点来源并执行检查
        
        Args:
            site_source: 站点来源
            config: 本次运行的配置
        
        Returns:
            ProbeStatus: 整体状态
        """
        logger_service = LoggerService()
        
        try:
            sites = site_source.get_sites()
        except SiteSourceError as e:
            logger_service.logger.error(f"{SOURCE_FAILURE_MESSAGE}: {str(e)}", exc_info=e)
            return ProbeStatus(message=SOURCE_FAILURE_MESSAGE, health=Health.DEGRADED)
        
        return self.check_sites(sites, config, logger_service=logger_service)
    
    def check_sites(self, sites: Sequence[Site], config: ProbeConfig,
                    logger_service: Optional[LoggerService] = None) -> ProbeStatus:
        """
        检查给定站点的所有主机名
        
        Args:
            sites: 站点列表
            config: 本次运行的配置
            logger_service: 日志服务，为None时新建
        
        Returns:
            ProbeStatus: 整体状态
        """
        logger_service = logger_service or LoggerService()
        checker = self.checker or SSLCertificateChecker(timeout=config.timeout)
        
        # 本次运行内所有检查共享同一个阈值
        threshold = ExpiryCalculator(config.nb_days).calculate_threshold()
        
        targets = [
            (site_index, hostname)
            for site_index, site in enumerate(sites)
            for hostname in site.hostnames
            if hostname != LOOPBACK_HOSTNAME
        ]
        
        logger_service.log_check_start(len(sites), len(targets))
        logger_service.log_threshold(threshold, config.nb_days)
        
        results = self._check_all(checker, targets, threshold, config.max_workers, logger_service)
        
        failures = {}
        for (site_index, hostname), result in zip(targets, results):
            logger_service.log_certificate_result(sites[site_index].site_id, result)
            if not result.is_valid:
                failures.setdefault(site_index, []).append(hostname)
        
        groups = [
            SiteFailureGroup(site_id=sites[site_index].site_id, hostnames=tuple(hostnames))
            for site_index, hostnames in sorted(failures.items())
        ]
        
        logger_service.log_check_end()
        
        if not groups:
            return ProbeStatus(message=VALID_MESSAGE, health=Health.HEALTHY)
        
        return ProbeStatus(
            message=self.format_failure_message(groups, config.nb_days),
            health=Health.DEGRADED,
            failure_groups=tuple(groups)
        )
    
    def _check_all(self, checker: SSLCertificateCheckerInterface,
                   targets: List[Tuple[int, str]], threshold: datetime,
                   max_workers: int, logger_service: LoggerService) -> List[CertificateCheckResult]:
        """
        并发检查所有主机名，结果顺序与输入顺序一致
        
        Args:
            checker: 证书检查器
            targets: (站点序号, 主机名) 列表
            threshold: 过期阈值
            max_workers: 最大线程数
            logger_service: 日志服务
        
        Returns:
            List[CertificateCheckResult]: 检查结果列表
        """
        if not targets:
            return []
        
        def check(target: Tuple[int, str]) -> CertificateCheckResult:
            hostname = target[1]
            try:
                return checker.check_certificate(hostname, threshold)
            except Exception as e:
                logger_service.log_error(hostname, e)
                return CertificateCheckResult(
                    hostname=hostname,
                    reason=CheckOutcome.CONNECTION_FAILED,
                    error_message=f"{type(e).__name__}: {str(e)}"
                )
        
        with ThreadPoolExecutor(max_workers=min(max_workers, len(targets))) as executor:
            return list(executor.map(check, targets))
    
    @staticmethod
    def format_failure_message(groups: Sequence[SiteFailureGroup], nb_days: int) -> str:
        """
        格式化失败信息
        
        Args:
            groups: 失败分组
            nb_days: 告警天数
        
        Returns:
            str: 诊断信息
        """
        formatted_groups = f"[{', '.join(group.format() for group in groups)}]"
        return INVALID_MESSAGE_TEMPLATE.format(nb_days=nb_days, groups=formatted_groups)
