"""Wire OS termination signals to a checker's shutdown request."""

import asyncio
import signal
import sys
from typing import Any, Dict, Iterable, List, Optional

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Handlers replaced by the signal.signal fallback, restored on removal
_previous_handlers: Dict[signal.Signals, Any] = {}


def install_signal_handlers(checker, loop: Optional[asyncio.AbstractEventLoop] = None,
                            signals: Iterable[signal.Signals] = DEFAULT_SIGNALS) -> List[signal.Signals]:
    """Call ``checker.request_shutdown`` when any of ``signals`` arrives.

    Args:
        checker: Object with a ``request_shutdown()`` method
        loop: Loop to register on; defaults to the running loop
        signals: Signals to handle

    Returns:
        The signals that were installed
    """
    loop = loop or asyncio.get_running_loop()
    installed = []
    for sig in signals:
        if sys.platform != "win32":
            loop.add_signal_handler(sig, checker.request_shutdown)
        else:
            previous = signal.signal(sig, lambda *_: loop.call_soon_threadsafe(checker.request_shutdown))
            _previous_handlers.setdefault(sig, previous)
        installed.append(sig)
    return installed


def remove_signal_handlers(signals: Iterable[signal.Signals],
                           loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    loop = loop or asyncio.get_running_loop()
    for sig in signals:
        if sys.platform != "win32":
            loop.remove_signal_handler(sig)
        else:
            previous = _previous_handlers.pop(sig, signal.SIG_DFL)
            signal.signal(sig, signal.SIG_DFL if previous is None else previous)
