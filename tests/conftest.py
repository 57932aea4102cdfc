"""
测试公共夹具
"""
import ipaddress
import socket
import ssl
import threading
from datetime import datetime, timezone, timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def build_certificate(common_name, dns_names=(), not_after=None, ip_addresses=(), key=None):
    """
    生成自签名测试证书
    
    Args:
        common_name: 主题通用名称
        dns_names: DNS类型的主题备用名称
        not_after: 过期时间，默认90天后
        ip_addresses: IP类型的主题备用名称
        key: 私钥，默认新生成
    
    Returns:
        tuple: (证书, 私钥)
    """
    key = key or ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(timezone.utc)
    not_after = not_after or now + timedelta(days=90)
    not_before = min(now, not_after) - timedelta(days=30)
    
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
    )
    
    alternative_names = [x509.DNSName(name) for name in dns_names]
    alternative_names += [x509.IPAddress(ipaddress.ip_address(address)) for address in ip_addresses]
    if alternative_names:
        builder = builder.add_extension(x509.SubjectAlternativeName(alternative_names), critical=False)
    
    return builder.sign(key, hashes.SHA256()), key


def certificate_der(common_name, dns_names=(), not_after=None, ip_addresses=()):
    """生成DER编码的测试证书"""
    certificate, _ = build_certificate(common_name, dns_names, not_after, ip_addresses)
    return certificate.public_bytes(serialization.Encoding.DER)


class LocalTLSServer:
    """在127.0.0.1上监听的最小TLS服务器，完成握手后等待客户端关闭"""
    
    def __init__(self, certfile, keyfile):
        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self.context.load_cert_chain(certfile, keyfile)
        
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.listen(5)
        self.port = self.sock.getsockname()[1]
        
        self.thread = threading.Thread(target=self._serve, daemon=True)
    
    def _serve(self):
        while True:
            try:
                conn, _ = self.sock.accept()
            except OSError:
                return
            
            conn.settimeout(5)
            try:
                with self.context.wrap_socket(conn, server_side=True) as tls_conn:
                    tls_conn.recv(1)
            except OSError:
                conn.close()
    
    def __enter__(self):
        self.thread.start()
        return self
    
    def __exit__(self, exc_type, exc, tb):
        self.sock.close()
        self.thread.join(timeout=5)


@pytest.fixture
def tls_server_factory(tmp_path):
    """创建使用指定证书的本地TLS服务器，extra_certificates 会跟在叶子证书之后发送"""
    
    def factory(common_name, dns_names=(), not_after=None, extra_certificates=()):
        certificate, key = build_certificate(common_name, dns_names, not_after)
        chain = [certificate, *extra_certificates]
        
        certfile = tmp_path / f"{common_name}-{x509.random_serial_number()}.crt"
        keyfile = certfile.with_suffix('.key')
        certfile.write_bytes(b"".join(c.public_bytes(serialization.Encoding.PEM) for c in chain))
        keyfile.write_bytes(key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption()
        ))
        
        return LocalTLSServer(str(certfile), str(keyfile))
    
    return factory


@pytest.fixture
def closed_port():
    """获取一个当前没有监听的本地端口"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
