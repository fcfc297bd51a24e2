# Andy Zhao
"""
robustcv: robust model estimation (RANSAC, MSAC, LMedS, PROSAC, PROMedS).

- ransac: the generic estimation engine
- models: model fitters plugged into the engine
"""

__version__ = "0.1.0"
