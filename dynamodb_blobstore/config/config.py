import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class BlobStoreConfig(BaseModel):
    """Configuration for the DynamoDB connection and the backing table."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID (None falls back to boto3 credential discovery)"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for DynamoDB Local or LocalStack)"
    )

    # Table configuration
    table_name: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE", "konserve"),
        description="Name of the table backing the store"
    )

    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to the table name"
    )

    consistent_read: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_CONSISTENT_READ"),
        description="Use strongly consistent reads for get, batch-get and scan"
    )

    # Only used when the table has to be created
    read_capacity: int = Field(
        default=50,
        ge=1,
        description="Provisioned read capacity units for a newly created table"
    )

    write_capacity: int = Field(
        default=50,
        ge=1,
        description="Provisioned write capacity units for a newly created table"
    )

    table_wait_delay_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Polling interval while waiting for a table to become active or disappear"
    )

    table_wait_max_attempts: int = Field(
        default=60,
        ge=1,
        description="Maximum number of polls before giving up on a table wait"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        ge=0,
        description="botocore transport retry attempts (the store itself never retries)"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_DEBUG_LOGGING"),
        description="Enable debug logging for DynamoDB operations"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('table_name')
    @classmethod
    def validate_table_name(cls, v):
        """Validate table name."""
        if not v or not v.strip():
            raise ValueError("Table name is required")
        return v

    def get_table_name(self) -> str:
        """Get the full table name with prefix.

        Returns:
            Full table name
        """
        if self.table_prefix:
            return f"{self.table_prefix}_{self.table_name}"
        return self.table_name

    @classmethod
    def from_env(cls) -> 'BlobStoreConfig':
        """Create configuration from environment variables.

        Returns:
            BlobStoreConfig instance
        """
        return cls()

    @classmethod
    def for_local_development(cls, table_name: str = "konserve-dynamodb") -> 'BlobStoreConfig':
        """Create configuration for DynamoDB Local (docker run -p 8000:8000 amazon/dynamodb-local).

        Args:
            table_name: Table to back the store

        Returns:
            BlobStoreConfig instance configured for local development
        """
        return cls(
            aws_access_key_id="dummy",
            aws_secret_access_key="dummy",
            region_name="us-west-2",
            endpoint_url="http://localhost:8000",
            table_name=table_name,
            enable_debug_logging=True
        )

    @classmethod
    def with_table(cls, table_name: str, **kwargs) -> 'BlobStoreConfig':
        """Create configuration for a specific table.

        Args:
            table_name: Table to back the store
            **kwargs: Additional configuration parameters

        Returns:
            BlobStoreConfig instance
        """
        return cls(table_name=table_name, **kwargs)

    model_config = ConfigDict(
        validate_assignment=True
    )
