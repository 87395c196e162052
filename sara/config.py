# Configuration settings should be set in app.config
# The SARA class attributes and the environment are used as fallbacks
import os
from flask import current_app
from functools import lru_cache
import sara
from typing import Optional, Union


@lru_cache(maxsize=128)
def get_config(option: str) -> Optional[Union[bool, str]]:
    """Retrieve a configuration parameter from the app
    :param option: configuration parameter
    :return: configuration value
    """
    try:
        result = current_app.config[option]
    except (KeyError, RuntimeError):
        # no app context or the app doesn't set this option
        result = getattr(sara.SARA, option, os.environ.get(option, None))
    return result

