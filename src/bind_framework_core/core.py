from __future__ import annotations

from ._core_base import *  # noqa: F401,F403
from ._core_model import *  # noqa: F401,F403
from ._core_readers import *  # noqa: F401,F403
from ._core_profiles import *  # noqa: F401,F403
from ._core_typemaps import *  # noqa: F401,F403
from ._core_overloads import *  # noqa: F401,F403
from ._core_docs import *  # noqa: F401,F403
from ._core_cache import *  # noqa: F401,F403
from ._core_settings import *  # noqa: F401,F403
from ._core_writer import *  # noqa: F401,F403
from ._core_orchestration import *  # noqa: F401,F403
