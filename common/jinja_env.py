# common/jinja_env.py
from jinja2 import Environment, StrictUndefined

from generation.derivation import convert_km_to_miles, enforce_time_format


def time_hhmm(v):
    return enforce_time_format(v) if isinstance(v, str) and v.strip() else v


def km_to_miles(v):
    return convert_km_to_miles(v) if v not in (None, "") else v


def build_env(undefined=StrictUndefined) -> Environment:
    # templates render into WordprocessingML, values must be XML-escaped
    env = Environment(undefined=undefined, autoescape=True)
    env.filters.update({
        "time_hhmm": time_hhmm,
        "km_to_miles": km_to_miles,
    })
    return env
