"""Pydantic schemas for the GearDesk API."""

from geardesk.schemas.base import *
from geardesk.schemas.auth import *
from geardesk.schemas.vendor import *
from geardesk.schemas.product import *
from geardesk.schemas.purchase import *
from geardesk.schemas.inspection import *
from geardesk.schemas.equipment import *
from geardesk.schemas.bundle import *
from geardesk.schemas.settings import *
from geardesk.schemas.catalog import *
from geardesk.schemas.dashboard import *
from geardesk.schemas.whatsapp import *
from geardesk.schemas.webhook import *
