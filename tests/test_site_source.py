"""
站点来源测试
"""
import pytest
import os
from unittest.mock import patch

from ssl_certificate_probe.exceptions import SiteSourceError
from ssl_certificate_probe.models import Site
from ssl_certificate_probe.services.site_source import (
    EnvSiteSource,
    StaticSiteSource,
    validate_hostname,
)


class TestSite:
    """站点模型测试类"""
    
    def test_from_server_names_deduplicates_in_order(self):
        """测试主域名和别名按顺序去重"""
        site = Site.from_server_names("S1", "a.example.com",
                                      ["www.a.example.com", "a.example.com", "", "b.example.com"])
        
        assert site.site_id == "S1"
        assert site.hostnames == ("a.example.com", "www.a.example.com", "b.example.com")
    
    def test_from_server_names_without_aliases(self):
        """测试没有别名的站点"""
        assert Site.from_server_names("S1", "a.example.com").hostnames == ("a.example.com",)


class TestValidateHostname:
    """主机名格式验证测试"""
    
    @pytest.mark.parametrize("hostname", [
        "example.com",
        "a.example.com",
        "localhost",
        "xn--bcher-kva.example",
        "Mixed.Case.example.com",
    ])
    def test_valid(self, hostname):
        assert validate_hostname(hostname) is True
    
    @pytest.mark.parametrize("hostname", [
        "",
        "https://example.com",
        "example.com:443",
        "example.com/path",
        "invalid..domain",
        ".example.com",
        "-bad.example.com",
        "a" * 254,
        None,
    ])
    def test_invalid(self, hostname):
        assert validate_hostname(hostname) is False


class TestEnvSiteSource:
    """环境变量站点来源测试类"""
    
    def setup_method(self):
        """测试前准备"""
        self.source = EnvSiteSource()
    
    def test_init(self):
        """测试初始化"""
        assert self.source.env_var_name == "SSL_CHECK_SITES"
        assert EnvSiteSource("CUSTOM_SITES").env_var_name == "CUSTOM_SITES"
    
    @patch.dict(os.environ, {'SSL_CHECK_SITES': 'S1=a.example.com,www.a.example.com;S2=b.example.com,localhost'})
    def test_get_sites(self):
        """测试解析站点列表"""
        sites = self.source.get_sites()
        
        assert sites == [
            Site("S1", ("a.example.com", "www.a.example.com")),
            Site("S2", ("b.example.com", "localhost")),
        ]
    
    @patch.dict(os.environ, {'SSL_CHECK_SITES': ' S1 = a.example.com , a.example.com ; ; S2=b.example.com ;'})
    def test_get_sites_strips_whitespace_and_duplicates(self):
        """测试清理空白和重复主机名"""
        sites = self.source.get_sites()
        
        assert sites == [Site("S1", ("a.example.com",)), Site("S2", ("b.example.com",))]
    
    @patch.dict(os.environ, {'SSL_CHECK_SITES': 'S1=a.example.com,invalid..domain,https://b.example.com'})
    def test_get_sites_skips_invalid_hostnames(self):
        """测试跳过无效主机名"""
        with patch.object(self.source, 'logger') as mock_logger:
            sites = self.source.get_sites()
        
        assert sites == [Site("S1", ("a.example.com",))]
        assert mock_logger.warning.call_count == 2
    
    @patch.dict(os.environ, {'SSL_CHECK_SITES': 'S1='})
    def test_get_sites_site_without_hostnames(self):
        """测试没有主机名的站点"""
        assert self.source.get_sites() == [Site("S1", ())]
    
    @patch.dict(os.environ, {}, clear=True)
    def test_get_sites_missing_env(self):
        """测试环境变量缺失"""
        with pytest.raises(SiteSourceError, match="SSL_CHECK_SITES"):
            self.source.get_sites()
    
    @patch.dict(os.environ, {'SSL_CHECK_SITES': '   '})
    def test_get_sites_empty_env(self):
        """测试环境变量为空"""
        with pytest.raises(SiteSourceError):
            self.source.get_sites()
    
    @pytest.mark.parametrize("value", [
        'a.example.com,b.example.com',
        'S1=a.example.com;=b.example.com',
    ])
    def test_get_sites_malformed(self, value):
        """测试格式错误的站点配置"""
        with patch.dict(os.environ, {'SSL_CHECK_SITES': value}):
            with pytest.raises(SiteSourceError):
                self.source.get_sites()


class TestStaticSiteSource:
    """固定站点来源测试类"""
    
    def test_from_sites(self):
        """测试使用站点对象列表"""
        sites = [Site("S1", ("a.example.com",))]
        source = StaticSiteSource(sites)
        
        assert source.get_sites() == sites
        assert source.get_sites() is not source.get_sites()
    
    def test_from_mapping(self):
        """测试使用站点映射"""
        source = StaticSiteSource({
            'S1': ['a.example.com', 'www.a.example.com', 'a.example.com'],
            'S2': [],
        })
        
        assert source.get_sites() == [
            Site("S1", ("a.example.com", "www.a.example.com")),
            Site("S2", ()),
        ]
