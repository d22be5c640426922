"""
DNS Provider Factory
Creates DNS provider clients based on configuration
"""

from typing import Optional

from polydns.api.azure_client import AzureClient
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.bunny_client import BunnyClient
from polydns.api.cloudflare_client import CloudflareClient
from polydns.api.digitalocean_client import DigitalOceanClient
from polydns.api.google_client import GoogleCloudDNSClient
from polydns.api.route53_client import Route53Client
from polydns.api.vultr_client import VultrClient
from polydns.utils.config import Settings, get_settings
from polydns.utils.logger import get_logger

logger = get_logger(__name__)


PROVIDER_NAMES = [
    "VULTR",
    "DIGITALOCEAN",
    "CLOUDFLARE",
    "BUNNY",
    "AZURE",
    "GOOGLE",
    "ROUTE53",
]


def get_dns_provider(
    provider_name: Optional[str] = None,
    config: Optional[Settings] = None
) -> BaseDNSProvider:
    """
    Factory function to create DNS provider clients.
    
    Args:
        provider_name: Optional provider name (see PROVIDER_NAMES).
                      If None, reads from config.
        config: Optional Settings instance. Uses default if None.
        
    Returns:
        DNS provider client
        
    Raises:
        ValueError: If provider_name is invalid or its credentials are missing
        
    Example:
        # Use configured provider
        provider = get_dns_provider()
        
        # Explicitly use Cloudflare
        provider = get_dns_provider("CLOUDFLARE")
    """
    if config is None:
        config = get_settings()
    
    if provider_name is None:
        provider_name = config.dns_provider
    
    provider_name = provider_name.upper()
    
    logger.info(f"Creating DNS provider: {provider_name}")
    
    transport = {
        "timeout": config.request_timeout,
        "retry_attempts": config.retry_attempts,
        "page_size": config.page_size,
        "max_pages": config.max_pages,
    }
    
    if provider_name == "VULTR":
        config.require("vultr_api_key")
        return VultrClient(config.vultr_api_key, **transport)
    
    elif provider_name == "DIGITALOCEAN":
        config.require("digitalocean_api_token")
        return DigitalOceanClient(config.digitalocean_api_token, **transport)
    
    elif provider_name == "CLOUDFLARE":
        config.require("cloudflare_api_token")
        return CloudflareClient(config.cloudflare_api_token, **transport)
    
    elif provider_name == "BUNNY":
        config.require("bunny_api_key")
        return BunnyClient(config.bunny_api_key, **transport)
    
    elif provider_name == "AZURE":
        config.require(
            "azure_tenant_id",
            "azure_client_id",
            "azure_client_secret",
            "azure_subscription_id",
            "azure_resource_group"
        )
        return AzureClient(
            config.azure_tenant_id,
            config.azure_client_id,
            config.azure_client_secret,
            config.azure_subscription_id,
            config.azure_resource_group,
            **transport
        )
    
    elif provider_name == "GOOGLE":
        config.require("google_project_id", "google_access_token")
        return GoogleCloudDNSClient(config.google_project_id, config.google_access_token, **transport)
    
    elif provider_name == "ROUTE53":
        config.require("aws_access_key_id", "aws_secret_access_key")
        return Route53Client(
            config.aws_access_key_id,
            config.aws_secret_access_key,
            region=config.aws_region,
            **transport
        )
    
    else:
        raise ValueError(
            f"Unknown DNS provider: {provider_name}. "
            f"Valid options are: {', '.join(PROVIDER_NAMES)}"
        )
