from inspect import FullArgSpec, getfile, getfullargspec, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


MAX_CONTENT_LENGTH = 500

_MASK = '********'
# keyword='value' inside attrs / pydantic reprs, e.g. ContactInfo(email='a@b.com', ...)
_SENSITIVE_PATTERN = re.compile(
    r"(\b(?:" + '|'.join(sorted(SENSITIVE_KEYWORDS)) + r")\b)(=|': |\": )(['\"])(.*?)\3"
)
# Gateway credentials that can end up in error messages or webhook bodies
_SECRET_PATTERN = re.compile(r'\b(sk|rk|whsec)_(live|test|mock)?_?[A-Za-z0-9]{4,}')


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    try:
        lineno = getsourcelines(func)[1]
    except (OSError, TypeError):
        lineno = 0
    return f'{basename(getfile(getattr(func, "__func__", func)))}::{func.__qualname__}:{lineno}'


def reset_call_depth() -> None:
    layer = call_depth_var.get() - 1
    call_depth_var.set(layer)
    if not layer:
        chain_start_time_var.set(0)


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[Any, Any]]:
    if hasattr(func, '__wrapped__'):
        func = func.__wrapped__  # type: ignore
    full_arg_spec: FullArgSpec = getfullargspec(func)
    spec_args: list[str] = full_arg_spec.args

    if not full_arg_spec.varkw:
        kw_list: list[str] = spec_args + full_arg_spec.kwonlyargs
        kwargs = {k: v for k, v in kwargs.items() if k in kw_list}

    if not full_arg_spec.varargs:
        spec_default: list[Any] = list(full_arg_spec.defaults) if full_arg_spec.defaults else []
        args_dict = dict(
            zip(
                spec_args,
                [None] * (len(spec_args) - len(spec_default)) + spec_default,
                strict=False,
            )
        )
        if args_dict := {k: v for k, v in args_dict.items() if k not in kwargs}:
            args_max_len: int = len(args_dict)
            args_min_len: int = len([value for value in args_dict.values() if value is None])
            if len(args) not in range(args_min_len, args_max_len + 1):
                args = args[:args_max_len]
        else:
            args = ()

    return args, kwargs


def mask_value(keyword: str, value: str) -> str:
    """
    Partial masks keep enough for support to match a buyer:
    jamie@gmail.com -> j****@gmail.com, ABC-1234 -> ******34
    """
    if keyword == 'email' and '@' in value:
        local, _, domain = value.partition('@')
        return f'{local[:1]}****@{domain}'
    if keyword in ('phone', 'license_plate') and len(value) > 4:
        return f'{"*" * (len(value) - 2)}{value[-2:]}'
    return _MASK


def mask_sensitive(data: Any) -> Any:
    """Mask contact details and gateway secrets in the text form of any value."""
    if data is None or isinstance(data, (bool, int, float)):
        return data
    if isinstance(data, (bytes, bytearray)):
        # Raw webhook bodies, logged as text so the secret pattern still applies
        data = bytes(data).decode('utf-8', errors='replace')
    data_str = str(data)
    masked = _SENSITIVE_PATTERN.sub(
        lambda m: f'{m[1]}{m[2]}{m[3]}{mask_value(m[1], m[4])}{m[3]}', data_str
    )
    masked = _SECRET_PATTERN.sub(lambda m: f'{m[1]}_{_MASK}', masked)
    return data if masked == data_str else masked


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    if keyword not in SENSITIVE_KEYWORDS or value is None:
        return value
    return mask_value(keyword, str(value))


def truncate_content(data: Any) -> Any:
    if isinstance(data, str) and len(data) > MAX_CONTENT_LENGTH:
        return f'{data[:MAX_CONTENT_LENGTH]}...(+{len(data) - MAX_CONTENT_LENGTH} chars)'
    return data
