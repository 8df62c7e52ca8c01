"""Utilities for handling KeyboardInterrupt in try-except blocks.

External build phases can run for minutes; an interrupt while waiting on one
must reach the main thread instead of being reported as a phase failure.
"""

import _thread


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Handle KeyboardInterrupt by propagating it to the main thread.

    Calls _thread.interrupt_main() before re-raising the exception.

    Usage:
        try:
            subprocess.run(...)
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)

    Args:
        ke: The KeyboardInterrupt exception to handle

    Raises:
        KeyboardInterrupt: Always re-raises the exception after handling
    """
    _thread.interrupt_main()
    raise ke
