"""Graphwire typed shapes for Graph API and FQL responses.

Each model is the field table the JsonMapper binds JSON against: a field
maps to the JSON key of the same name unless ``Field(alias=...)`` says
otherwise, and ``List[Shape]`` fields recurse into their element shape.
Unknown keys are ignored and missing keys stay None, since the API omits
fields inconsistently.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

# Example: 2010-02-28T16:11:08+0000
FACEBOOK_LONG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def parse_facebook_date(value: Any) -> Optional[datetime]:
    """Parse the long ISO-8601 form or the short epoch-seconds form."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.isascii() and text.isdigit():
            return datetime.fromtimestamp(int(text), tz=timezone.utc)
        try:
            return datetime.strptime(text, FACEBOOK_LONG_DATE_FORMAT)
        except ValueError:
            pass
    raise ValueError(
        f"Unable to parse date {value!r} using format '{FACEBOOK_LONG_DATE_FORMAT}' "
        "or epoch seconds"
    )


def _unwrap_data(value: Any) -> Any:
    # Some list-valued fields arrive wrapped as {"data": [...]}
    if isinstance(value, dict) and "data" in value:
        return value["data"]
    return value


def _likes_from_count(value: Any) -> Any:
    # "likes" is either a bare count or a {"count", "data"} object
    if isinstance(value, int) and not isinstance(value, bool):
        return {"count": value}
    return value


FacebookDate = Annotated[Optional[datetime], BeforeValidator(parse_facebook_date)]


class FacebookType(BaseModel):
    """Base shape: every Graph object carries an id."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    id: Optional[str] = None


class NamedFacebookType(FacebookType):
    name: Optional[str] = None


class CategorizedFacebookType(NamedFacebookType):
    category: Optional[str] = None


class Venue(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Page(CategorizedFacebookType):
    picture: Optional[str] = None
    link: Optional[str] = None
    username: Optional[str] = None
    founded: Optional[str] = None
    company_overview: Optional[str] = None
    mission: Optional[str] = None
    products: Optional[str] = None
    fan_count: Optional[int] = None
    likes: Optional[int] = None
    community_page: Optional[bool] = Field(default=None, alias="is_community_page")
    description: Optional[str] = None
    checkins: Optional[int] = None
    phone: Optional[str] = None
    access_token: Optional[str] = None


class Comment(FacebookType):
    sender: Optional[NamedFacebookType] = Field(default=None, alias="from")
    message: Optional[str] = None
    created_time: FacebookDate = None
    likes: Optional[int] = None


class Likes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: Optional[int] = None
    data: List[NamedFacebookType] = Field(default_factory=list)


class Comments(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: Optional[int] = None
    data: List[Comment] = Field(default_factory=list)


class Privacy(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Optional[str] = None
    description: Optional[str] = None
    friends: Optional[str] = None
    networks: Optional[str] = None
    deny: Optional[str] = None


class Action(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    link: Optional[str] = None


class Post(NamedFacebookType):
    sender: Optional[CategorizedFacebookType] = Field(default=None, alias="from")
    message: Optional[str] = None
    picture: Optional[str] = None
    link: Optional[str] = None
    caption: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    icon: Optional[str] = None
    attribution: Optional[str] = None
    privacy: Optional[Privacy] = None
    likes: Annotated[Optional[Likes], BeforeValidator(_likes_from_count)] = None
    comments: Optional[Comments] = None
    to: Annotated[List[NamedFacebookType], BeforeValidator(_unwrap_data)] = Field(
        default_factory=list
    )
    actions: List[Action] = Field(default_factory=list)
    created_time: FacebookDate = None
    updated_time: FacebookDate = None


class Group(NamedFacebookType):
    owner: Optional[NamedFacebookType] = None
    description: Optional[str] = None
    link: Optional[str] = None
    venue: Optional[Venue] = None
    privacy: Optional[str] = None
    updated_time: FacebookDate = None


class MetricValue(BaseModel):
    """One row of ``SELECT metric, value FROM insights``.

    ``value`` is a number for most metrics and a per-bucket object for some
    (e.g. ``page_tab_views_login_top_unique``).
    """

    model_config = ConfigDict(extra="ignore")

    metric: str
    value: Any


# ── Connections ──

T = TypeVar("T")


class Paging(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    previous_page_url: Optional[str] = Field(default=None, alias="previous")
    next_page_url: Optional[str] = Field(default=None, alias="next")


class Connection(BaseModel, Generic[T]):
    """One page of a Graph connection plus its cursor URLs."""

    model_config = ConfigDict(extra="ignore")

    data: List[T]
    paging: Optional[Paging] = None

    @property
    def previous_page_url(self) -> Optional[str]:
        return self.paging.previous_page_url if self.paging else None

    @property
    def next_page_url(self) -> Optional[str]:
        return self.paging.next_page_url if self.paging else None

    @property
    def has_previous(self) -> bool:
        return bool(self.previous_page_url)

    @property
    def has_next(self) -> bool:
        return bool(self.next_page_url)
