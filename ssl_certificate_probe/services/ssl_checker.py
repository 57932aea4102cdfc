"""
SSL证书检查服务
"""
import ipaddress
import select
import socket
from contextlib import closing
from datetime import datetime
from typing import List, Optional, Sequence, Set
import logging

import idna
from cryptography import x509
from cryptography.x509.oid import NameOID
from OpenSSL import SSL, crypto

from ..interfaces import SSLCertificateCheckerInterface
from ..models import CertificateCheckResult, CheckOutcome
from .config_validator import DEFAULT_TIMEOUT
from .error_handler import NetworkErrorHandler
from .expiry_calculator import ExpiryCalculator


HTTPS_PORT = 443


class SSLCertificateChecker(SSLCertificateCheckerInterface):
    """SSL证书检查器实现"""
    
    def __init__(self, timeout: float = DEFAULT_TIMEOUT, port: int = HTTPS_PORT):
        """
        初始化SSL证书检查器
        
        Args:
            timeout: 连接超时时间（秒）
            port: SSL端口，默认443
        """
        self.timeout = timeout
        self.port = port
        self.logger = logging.getLogger(__name__)
        self.error_handler = NetworkErrorHandler()
    
    def check_certificate(self, hostname: str, threshold: datetime) -> CertificateCheckResult:
        """
        检查单个主机名的SSL证书
        
        只尝试一次连接；任何连接错误都会转换为无效结果。
        
        Args:
            hostname: 要检查的主机名
            threshold: 过期阈值（本次运行内所有主机共享）
        
        Returns:
            CertificateCheckResult: 检查结果
        """
        try:
            chain = self._get_certificate_chain(hostname)
        except (OSError, ValueError, SSL.Error) as e:
            error_info = self.error_handler.handle_ssl_connection_error(hostname, e)
            return CertificateCheckResult(
                hostname=hostname,
                reason=CheckOutcome.CONNECTION_FAILED,
                error_message=f"{error_info['error_type']}: {error_info['error_message']}"
            )
        
        return self.evaluate_chain(hostname, chain, threshold)
    
    def evaluate_chain(self, hostname: str, chain: Sequence[bytes],
                       threshold: datetime) -> CertificateCheckResult:
        """
        按出现顺序（叶子证书优先）在证书链中查找与主机名匹配的证书，并判断其是否过期
        
        Args:
            hostname: 主机名
            chain: DER编码的证书链
            threshold: 过期阈值
        
        Returns:
            CertificateCheckResult: 检查结果
        """
        if not chain:
            return CertificateCheckResult(
                hostname=hostname,
                reason=CheckOutcome.NO_CERTIFICATE,
                error_message="服务器没有提供证书"
            )
        
        for position, der in enumerate(chain):
            certificate = self._load_certificate(hostname, position, der)
            if certificate is None:
                continue
            
            names = self._get_certificate_names(hostname, position, certificate)
            if names is None or hostname not in names:
                continue
            
            # 匹配的证书为权威证书，不再检查后续证书
            not_after = certificate.not_valid_after_utc
            if ExpiryCalculator.is_valid_until(not_after, threshold):
                reason = CheckOutcome.VALID
                error_message = None
            else:
                reason = CheckOutcome.EXPIRING
                error_message = f"证书将于 {not_after.isoformat()} 过期，早于阈值 {threshold.isoformat()}"
            
            return CertificateCheckResult(
                hostname=hostname,
                reason=reason,
                not_after=not_after,
                matched_name=hostname,
                error_message=error_message
            )
        
        return CertificateCheckResult(
            hostname=hostname,
            reason=CheckOutcome.HOSTNAME_MISMATCH,
            error_message=f"证书链中没有与 {hostname} 匹配的证书"
        )
    
    def _get_certificate_chain(self, hostname: str) -> List[bytes]:
        """
        获取服务器在握手中提供的证书链
        
        不校验证书信任链，只读取证书内容。
        
        Args:
            hostname: 主机名
        
        Returns:
            List[bytes]: DER编码的证书链（叶子证书在前）
        
        Raises:
            OSError: 连接失败、DNS解析失败或超时
            SSL.Error: TLS握手失败
        """
        context = SSL.Context(SSL.TLS_CLIENT_METHOD)
        context.set_verify(SSL.VERIFY_NONE)
        
        with socket.create_connection((hostname, self.port), timeout=self.timeout) as sock:
            with closing(SSL.Connection(context, sock)) as connection:
                connection.set_connect_state()
                if not self._is_ip_address(hostname):
                    connection.set_tlsext_host_name(idna.encode(hostname, uts46=True))
                self._do_handshake(connection, sock)
                chain = connection.get_peer_cert_chain() or []
        
        return [crypto.dump_certificate(crypto.FILETYPE_ASN1, certificate) for certificate in chain]
    
    def _do_handshake(self, connection: SSL.Connection, sock: socket.socket):
        """
        完成TLS握手
        
        带超时的套接字处于非阻塞模式，OpenSSL需要等待数据时会抛出 WantReadError，
        此时等待套接字就绪后重试。
        
        Args:
            connection: TLS连接
            sock: 底层套接字
        
        Raises:
            socket.timeout: 在超时时间内没有完成握手
        """
        while True:
            try:
                connection.do_handshake()
                return
            except SSL.WantReadError:
                ready, _, _ = select.select([sock], [], [], self.timeout)
            except SSL.WantWriteError:
                _, ready, _ = select.select([], [sock], [], self.timeout)
            
            if not ready:
                raise socket.timeout(f"TLS握手超时（{self.timeout} 秒）")
    
    @staticmethod
    def _is_ip_address(hostname: str) -> bool:
        # IP地址不发送SNI
        try:
            ipaddress.ip_address(hostname)
        except ValueError:
            return False
        return True
    
    def _load_certificate(self, hostname: str, position: int,
                          der: bytes) -> Optional[x509.Certificate]:
        try:
            return x509.load_der_x509_certificate(der)
        except ValueError as e:
            self.logger.debug(f"{hostname} 证书链第 {position} 个证书无法解析: {str(e)}")
            return None
    
    def _get_certificate_names(self, hostname: str, position: int,
                               certificate: x509.Certificate) -> Optional[Set[str]]:
        """
        获取证书的有效名称：主题通用名称 + DNS类型的主题备用名称
        
        Args:
            hostname: 正在检查的主机名（用于日志）
            position: 证书在链中的位置
            certificate: 证书
        
        Returns:
            Optional[Set[str]]: 名称集合；扩展数据无法解析时返回None
        """
        try:
            names = {
                str(attribute.value)
                for attribute in certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
            }
            try:
                san = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName)
                names.update(san.value.get_values_for_type(x509.DNSName))
            except x509.ExtensionNotFound:
                pass
        except (ValueError, x509.DuplicateExtension) as e:
            self.logger.debug(
                f"{hostname} 证书链第 {position} 个证书的名称无法解析: {str(e)}"
            )
            return None
        
        return names
