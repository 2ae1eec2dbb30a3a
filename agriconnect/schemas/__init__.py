# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .jobs.job import *
from .chat.chat import *
from .ratings.rating import *
from .common.common import *
