"""
错误处理服务
"""
import socket
import ssl
from typing import Any, Dict
from datetime import datetime, timezone
import logging

from OpenSSL import SSL


class NetworkErrorHandler:
    """
    网络错误处理器
    
    单个主机名的连接错误只会被归类和记录，不做重试，也不会向上传播。
    """
    
    def __init__(self):
        """初始化网络错误处理器"""
        self.logger = logging.getLogger(__name__)
    
    def classify_error(self, error: Exception) -> str:
        """
        对连接错误进行分类
        
        Args:
            error: 异常对象
        
        Returns:
            str: 错误类别
        """
        error_message = str(error).lower()
        
        # socket.timeout 在 3.10 之后是 TimeoutError 的别名
        if isinstance(error, (socket.timeout, TimeoutError)):
            return 'timeout'
        elif isinstance(error, socket.gaierror):
            return 'dns'
        elif isinstance(error, ConnectionRefusedError):
            return 'refused'
        elif isinstance(error, (ssl.SSLError, SSL.Error)):
            return 'tls'
        elif isinstance(error, (UnicodeError, ValueError)):
            return 'invalid_hostname'
        elif 'timed out' in error_message:
            return 'timeout'
        else:
            return 'network'
    
    def handle_ssl_connection_error(self, hostname: str, error: Exception) -> Dict[str, Any]:
        """
        处理SSL连接错误
        
        Args:
            hostname: 主机名
            error: 异常对象
        
        Returns:
            Dict[str, Any]: 错误信息
        """
        category = self.classify_error(error)
        error_info = {
            'hostname': hostname,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'category': category,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(category, error)
        }
        
        self.logger.debug(
            f"Impossible to check {hostname}: {error_info['error_type']}: {error_info['error_message']}",
            exc_info=error
        )
        
        return error_info
    
    def _get_suggested_action(self, category: str, error: Exception) -> str:
        """
        获取错误的建议处理方案
        
        Args:
            category: 错误类别
            error: 异常对象
        
        Returns:
            str: 建议的处理方案
        """
        error_message = str(error).lower()
        
        if category == 'timeout':
            return "检查网络连接，考虑增加超时时间"
        elif category == 'dns':
            return "检查域名是否正确，DNS服务器是否可用"
        elif category == 'refused':
            return "检查目标服务器是否运行，443端口是否开放"
        elif category == 'tls':
            if 'handshake failure' in error_message:
                return "SSL握手失败，检查SSL/TLS版本兼容性"
            return "SSL连接问题，检查服务器SSL配置"
        elif category == 'invalid_hostname':
            return "主机名格式无效，检查站点配置"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in error_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"
