"""
日志服务
"""
import os
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from ..interfaces import LoggerServiceInterface
from ..models import CertificateCheckResult, CheckOutcome
from .expiry_calculator import ExpiryCalculator


class LoggerService(LoggerServiceInterface):
    """
    日志服务实现
    
    每次检查运行创建一个实例，执行统计只属于该次运行。
    """
    
    def __init__(self, logger_name: str = "ssl_certificate_probe", log_level: Optional[str] = None):
        """
        初始化日志服务
        
        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')
        
        # 配置日志器
        self.logger = logging.getLogger(logger_name)
        self._configure_logger()
        
        self.expiry_calculator = ExpiryCalculator()
        
        # 执行统计
        self.execution_stats = {
            'start_time': None,
            'end_time': None,
            'total_sites': 0,
            'total_hostnames': 0,
            'valid_checks': 0,
            'invalid_checks': 0,
            'errors': []
        }
    
    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)
        
        # 避免重复添加处理器
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)
            
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)
            
            self.logger.addHandler(handler)
        
        # 防止日志传播到根日志器
        self.logger.propagate = False
    
    def log_check_start(self, site_count: int, hostname_count: int):
        """
        记录检查开始
        
        Args:
            site_count: 站点数量
            hostname_count: 要检查的主机名数量（不含localhost）
        """
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['total_sites'] = site_count
        self.execution_stats['total_hostnames'] = hostname_count
        
        self.logger.info(f"开始SSL证书检查，共 {site_count} 个站点，{hostname_count} 个主机名")
    
    def log_threshold(self, threshold: datetime, nb_days: int):
        """记录本次运行使用的过期阈值"""
        self.logger.debug(f"过期阈值: {threshold.isoformat()}（提前 {nb_days} 天）")
    
    def log_certificate_result(self, site_id: str, result: CertificateCheckResult):
        """
        记录证书检查结果
        
        Args:
            site_id: 站点标识
            result: 检查结果
        """
        if result.is_valid:
            self.execution_stats['valid_checks'] += 1
            self.logger.info(
                f"证书正常 - 站点: {site_id}, 主机名: {result.hostname}, "
                f"过期时间: {self._describe_expiry(result.not_after)}"
            )
            return
        
        self.execution_stats['invalid_checks'] += 1
        
        if result.is_expiring:
            self.logger.warning(
                f"证书即将过期或已过期 - 站点: {site_id}, 主机名: {result.hostname}, "
                f"过期时间: {self._describe_expiry(result.not_after)}"
            )
        elif result.reason is CheckOutcome.CONNECTION_FAILED:
            # 连接错误细节已在调试级别记录
            self.logger.warning(
                f"无法连接 - 站点: {site_id}, 主机名: {result.hostname}, "
                f"错误: {result.error_message}"
            )
        else:
            self.logger.warning(
                f"证书无效 - 站点: {site_id}, 主机名: {result.hostname}, "
                f"原因: {result.reason.value}, 错误: {result.error_message}"
            )
    
    def _describe_expiry(self, not_after: Optional[datetime]) -> str:
        if not_after is None:
            return "未知"
        
        days_until_expiry = self.expiry_calculator.calculate_days_until_expiry(not_after)
        return f"{not_after.isoformat()}（剩余 {days_until_expiry} 天）"
    
    def log_error(self, hostname: str, error: Exception):
        """
        记录错误信息
        
        Args:
            hostname: 主机名
            error: 异常对象
        """
        error_info = {
            'hostname': hostname,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
        
        self.execution_stats['errors'].append(error_info)
        
        self.logger.error(
            f"主机名 {hostname} 检查时发生错误: {type(error).__name__}: {str(error)}"
        )
        
        # 详细的堆栈跟踪（调试级别）
        self.logger.debug(
            f"主机名 {hostname} 错误堆栈跟踪:\n"
            f"{''.join(traceback.format_exception(type(error), error, error.__traceback__))}"
        )
    
    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息
        
        Args:
            config: 配置信息字典
        """
        self.logger.info("探针配置信息:")
        for key, value in config.items():
            self.logger.info(f"  {key}: {value}")
    
    def log_check_end(self):
        """记录检查结束"""
        self.execution_stats['end_time'] = datetime.now(timezone.utc)
        summary = self.get_execution_summary()
        
        self.logger.info(f"SSL证书检查完成，总执行时间: {summary['duration_seconds']:.2f} 秒")
        self.logger.info(
            f"检查统计: 总计 {summary['total_hostnames']} 个主机名, "
            f"有效 {summary['valid_checks']} 个, "
            f"无效 {summary['invalid_checks']} 个"
        )
    
    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要
        
        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        stats = self.execution_stats
        duration = 0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()
        
        return {
            'start_time': stats['start_time'].isoformat() if stats['start_time'] else None,
            'end_time': stats['end_time'].isoformat() if stats['end_time'] else None,
            'duration_seconds': duration,
            'total_sites': stats['total_sites'],
            'total_hostnames': stats['total_hostnames'],
            'valid_checks': stats['valid_checks'],
            'invalid_checks': stats['invalid_checks'],
            'error_count': len(stats['errors']),
            'errors': stats['errors']
        }
