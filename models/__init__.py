# Tables are registered on extensions.db; the app imports this package once
# during create_app so db.create_all() sees every model.

from .user import *
from .movement import *
from .location import *
from .territory_claimers import *
from .notification import *
