from __future__ import annotations

import datetime
from typing import Callable, Mapping, Type, TypeVar, Union

EncodedT = Union[bytes, bytearray, memoryview]
DecodedT = Union[str, int, float]
TemporalT = Union[datetime.timedelta, datetime.datetime]
EncodableT = Union[EncodedT, DecodedT, TemporalT]
NotEnoughDataT = TypeVar("NotEnoughDataT")
ErrorHandlerT = Callable[[BaseException], None]
ExceptionMappingT = Mapping[str, Union[Type[Exception], Mapping[str, Type[Exception]]]]
# A reactor callback receives the ready event mask.
ReadyCallbackT = Callable[[int], None]
