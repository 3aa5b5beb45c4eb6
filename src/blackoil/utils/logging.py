""" Timing logger for blackoil.

Logging of elapsed times is controlled by the configuration file blackoil.cfg, which
should be placed in the current working directory (where the python script is
initiated). All timing-related information is located in a section in the cfg-file
with heading logging; see sample file below.

By default, timing is switched off. It can be turned on by setting the keyword
'active' to True.

Timing is costly if applied to functions called many times, thus functions are
classified in the following (overlapping) sections

    all: Used to log all decorated functions.
    ad: Automatic differentiation helpers.
    assembly: Assembly of residuals and Jacobians.
    geometry: Pore volumes and transmissibilities.
    gridding: Grid construction.
    numerics: Discrete operators and solvers.
    properties: Evaluation of fluid properties.

Example logging section of blackoil.cfg:

    [logging]
    # Activate logging. Without this, the rest of the section has no effect
    active: True
    # To only log specific sections, use e.g.
    sections: assembly
    # multiple sections are separated by commas:
    sections: assembly, numerics

Ordinary diagnostics (Newton oscillations, convergence failures) are not affected by
this file; they are emitted through module level loggers from the standard logging
package and are configured the usual way.

"""
import functools
import logging
import time

import blackoil as bo

__all__ = ["time_logger"]


config = bo.config.get("logging", {})
active_sections = [
    s.strip().lower() for s in config.get("sections", "all").split(",")
]
logger_is_active = config.get("active", "false").strip().lower() == "true"
always_log = "all" in active_sections

t_logger = logging.getLogger("blackoil.timer")
t_logger.setLevel(logging.INFO)

if logger_is_active and not t_logger.hasHandlers():
    # Timings go to a separate file, only created when timing is switched on.
    time_handler = logging.FileHandler("BlackoilTimings.log")
    time_handler.setLevel(logging.INFO)
    time_handler.setFormatter(logging.Formatter("%(message)s"))
    t_logger.addHandler(time_handler)


def time_logger(sections):
    """A decorator that measures elapsed time for a function.

    Parameters:
        sections: List of sections the decorated function belongs to.

    """

    def inner_func(func):
        @functools.wraps(func)
        def log_time(*args, **kwargs):
            if not logger_is_active:
                return func(*args, **kwargs)
            elif always_log or any(s in active_sections for s in sections):
                name = f"{func.__qualname__} in module {func.__module__}."
                t_logger.info(f"Calling {name}")

                start_time = time.perf_counter()
                value = func(*args, **kwargs)
                run_time = time.perf_counter() - start_time

                t_logger.info(f"Finished {name} Elapsed time: {run_time:.8f} s")
                return value
            else:
                return func(*args, **kwargs)

        return log_time

    return inner_func
