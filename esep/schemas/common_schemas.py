from pydantic import Field

from .camel_base_model import CamelCaseBaseModel


class ActiveStatusRequest(CamelCaseBaseModel):
    """Toggle body for soft activation and deactivation"""

    is_active: bool = Field(..., description="New active status")


# Path ids are UUIDs; anything else is rejected before reaching the database
UUID_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
