"""
The module gives access to a set of unified units used in reservoir simulation.

To access the quantities, invoke bo.KEY. All quantities are expressed in SI units,
multiplying a number by a unit converts it to SI.

"""

""" Units """
# SI Prefixes
MICRO = 1e-6
MILLI = 1e-3
CENTI = 1e-2
KILO = 1e3
MEGA = 1e6

# Time
SECOND = 1.0
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR
YEAR = 365 * DAY

# Length
METER = 1.0
CENTIMETER = CENTI * METER
FEET = 0.3048 * METER

# Volume
CUBIC_METER = METER**3
STB = 0.158987294928 * CUBIC_METER

# Permeability
DARCY = 9.869233e-13
MILLIDARCY = MILLI * DARCY

# Pressure
PASCAL = 1.0
BAR = 100000 * PASCAL
PSI = 6894.75729 * PASCAL
ATMOSPHERIC_PRESSURE = 101325 * PASCAL

# Viscosity
POISE = 0.1 * PASCAL * SECOND
CENTIPOISE = CENTI * POISE

GRAVITY_ACCELERATION = 9.80665 * METER / SECOND**2
