"""
Course platform schemas.

Pydantic models for request validation.
"""

from lms.schemas.auth import *
from lms.schemas.user import *
from lms.schemas.lesson import *
from lms.schemas.course import *
from lms.schemas.enrollment import *
