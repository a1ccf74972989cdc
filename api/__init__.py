"""
api - PanelForge REST API.

All route modules register on a single Flask Blueprint with url_prefix /api.
JSON in and out; failures answer {"error": "<message>"}.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api")

# Import route modules so their @api_bp decorators execute
from api import routes_boards            # noqa: F401, E402
from api import routes_sections          # noqa: F401, E402
from api import routes_component_types   # noqa: F401, E402
from api import routes_instances         # noqa: F401, E402
from api import routes_pins              # noqa: F401, E402
from api import routes_mosfet            # noqa: F401, E402
from api import routes_bom               # noqa: F401, E402
from api import routes_build_progress    # noqa: F401, E402
from api import routes_power             # noqa: F401, E402
from api import routes_wiring            # noqa: F401, E402
from api import routes_mobiflight        # noqa: F401, E402
from api import routes_lvars             # noqa: F401, E402
from api import routes_journal           # noqa: F401, E402
from api import routes_export            # noqa: F401, E402
from api import errors                   # noqa: F401, E402
from api.server import create_app        # noqa: F401, E402
