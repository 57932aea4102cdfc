"""
站点主机名来源服务
"""
import os
import re
from typing import Iterable, List, Mapping, Union
import logging

from ..exceptions import SiteSourceError
from ..interfaces import SiteSourceInterface
from ..models import Site


HOSTNAME_PATTERN = re.compile(
    r'^[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?'
    r'(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
)


def validate_hostname(hostname: str) -> bool:
    """
    验证主机名格式（不包含协议、端口和路径）
    
    Args:
        hostname: 主机名
    
    Returns:
        bool: 是否有效
    """
    if not hostname or not isinstance(hostname, str):
        return False
    
    if len(hostname) > 253:
        return False
    
    return bool(HOSTNAME_PATTERN.match(hostname))


class EnvSiteSource(SiteSourceInterface):
    """
    从环境变量读取站点列表
    
    格式: ``site1=host-a,host-b;site2=host-c``，每个站点的第一个主机名为主域名，
    其余为别名。
    """
    
    def __init__(self, env_var_name: str = "SSL_CHECK_SITES"):
        """
        初始化站点来源
        
        Args:
            env_var_name: 环境变量名称，默认为"SSL_CHECK_SITES"
        """
        self.env_var_name = env_var_name
        self.logger = logging.getLogger(__name__)
    
    def get_sites(self) -> List[Site]:
        """
        从环境变量解析站点列表
        
        Returns:
            List[Site]: 站点列表
        
        Raises:
            SiteSourceError: 环境变量缺失或格式错误
        """
        sites_str = os.getenv(self.env_var_name, "")
        
        if not sites_str.strip():
            raise SiteSourceError(f"环境变量 {self.env_var_name} 未设置或为空")
        
        sites = []
        for entry in sites_str.split(';'):
            entry = entry.strip()
            if not entry:
                continue
            
            if '=' not in entry:
                raise SiteSourceError(f"站点配置格式错误（缺少'='）: {entry}")
            
            site_id, hostnames_str = entry.split('=', 1)
            site_id = site_id.strip()
            if not site_id:
                raise SiteSourceError(f"站点配置缺少站点标识: {entry}")
            
            hostnames = self._parse_hostnames(site_id, hostnames_str.split(','))
            if not hostnames:
                self.logger.warning(f"站点 {site_id} 没有有效的主机名")
            
            sites.append(Site.from_server_names(site_id, hostnames[0], hostnames[1:])
                         if hostnames else Site(site_id=site_id))
        
        self.logger.info(f"成功加载 {len(sites)} 个站点")
        return sites
    
    def _parse_hostnames(self, site_id: str, raw_hostnames: Iterable[str]) -> List[str]:
        valid_hostnames = []
        for hostname in raw_hostnames:
            hostname = hostname.strip()
            if not hostname:
                continue
            if validate_hostname(hostname):
                valid_hostnames.append(hostname)
            else:
                self.logger.warning(f"站点 {site_id} 跳过无效主机名: {hostname}")
        return valid_hostnames


class StaticSiteSource(SiteSourceInterface):
    """内存中的固定站点列表"""
    
    def __init__(self, sites: Union[Iterable[Site], Mapping[str, Iterable[str]]]):
        if isinstance(sites, Mapping):
            self.sites = []
            for site_id, hostnames in sites.items():
                hostnames = list(hostnames)
                if hostnames:
                    self.sites.append(Site.from_server_names(site_id, hostnames[0], hostnames[1:]))
                else:
                    self.sites.append(Site(site_id=site_id))
        else:
            self.sites = list(sites)
    
    def get_sites(self) -> List[Site]:
        return list(self.sites)
