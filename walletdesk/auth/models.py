"""
OAuth models.
"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class OAuthConfig(BaseModel):
    """Client-side OAuth configuration handed to the dashboard."""
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId")
    scopes: List[str]
    redirect_uri: str = Field(alias="redirectUri")
    is_demo: bool = Field(alias="isDemo")


class OAuthUser(BaseModel):
    """Profile returned by the identity provider."""
    id: str
    email: str
    name: str
    picture: str
    verified_email: bool
