"""
Configuration management using Pydantic Settings
Loads and validates provider credentials from the environment or a .env file
"""

from typing import List, Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


ProviderName = Literal[
    "VULTR",
    "DIGITALOCEAN",
    "CLOUDFLARE",
    "BUNNY",
    "AZURE",
    "GOOGLE",
    "ROUTE53",
]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Only the credentials of the selected provider need to be set.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # Provider Selection
    dns_provider: ProviderName = Field(
        default="CLOUDFLARE",
        description="DNS provider to use"
    )
    
    # Vultr
    vultr_api_key: str = Field(default="", description="Vultr API key")
    
    # DigitalOcean
    digitalocean_api_token: str = Field(default="", description="DigitalOcean API token")
    
    # Cloudflare
    cloudflare_api_token: str = Field(default="", description="Cloudflare API token")
    
    # Bunny
    bunny_api_key: str = Field(default="", description="Bunny.net account API key")
    
    # Azure DNS (service principal)
    azure_tenant_id: str = Field(default="", description="Azure AD tenant ID")
    azure_client_id: str = Field(default="", description="Azure AD application (client) ID")
    azure_client_secret: str = Field(default="", description="Azure AD client secret")
    azure_subscription_id: str = Field(default="", description="Azure subscription ID")
    azure_resource_group: str = Field(default="", description="Resource group holding the DNS zones")
    
    # Google Cloud DNS
    google_project_id: str = Field(default="", description="Google Cloud project ID")
    google_access_token: str = Field(default="", description="OAuth2 access token for Cloud DNS")
    
    # AWS Route 53
    aws_access_key_id: str = Field(default="", description="AWS Access Key ID")
    aws_secret_access_key: str = Field(default="", description="AWS Secret Access Key")
    aws_region: str = Field(default="us-east-1", description="Region used for SigV4 signing")
    
    # Transport
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds"
    )
    retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per request on network failures (1 = no retry)"
    )
    page_size: int = Field(default=100, ge=1, le=500, description="Items requested per page")
    max_pages: int = Field(default=1000, ge=1, description="Hard ceiling on pages fetched per list")
    
    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    
    @field_validator("dns_provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Accept provider names in any case"""
        return v.upper() if isinstance(v, str) else v
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper
    
    def missing(self, *fields: str) -> List[str]:
        """Return the names of the given fields that are empty"""
        return [name for name in fields if not getattr(self, name)]
    
    def require(self, *fields: str):
        """
        Ensure credential fields are set.
        
        Raises:
            ValueError: Naming the environment variables to set
        """
        missing = self.missing(*fields)
        if missing:
            env_names = ", ".join(name.upper() for name in missing)
            raise ValueError(
                f"Missing configuration: {env_names}. "
                "Set them in the environment or copy .env.example to .env."
            )


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get or create the settings singleton instance.
    Loads configuration from the environment (and .env, if present) on first call.
    
    Returns:
        Settings instance
        
    Raises:
        ValidationError: If environment variables are invalid
    """
    global _settings
    
    if _settings is None:
        _settings = Settings()
    
    return _settings


def reset_settings():
    """
    Reset the settings singleton (useful for testing)
    """
    global _settings
    _settings = None
