"""Database models — re-exports all models.

Import from here:  from resource_site.models import User, SysResource, ...
Or from submodules: from resource_site.models.auth import User
"""

from .base import Base  # noqa: F401

# Accounts & purchases
from .auth import Order, User  # noqa: F401

# Downloadable resources
from .resources import ResourceImage, SysResource  # noqa: F401

# Website content
from .site import CarouselSlide  # noqa: F401
