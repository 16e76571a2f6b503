"""
Ink Recipe Prediction & Optimization Engine

Predicts and optimizes multi-ink color recipes for print/textile production
using Kubelka-Munk mixing and CIEDE2000 color difference calculation.
"""

__version__ = "0.1.0"
__author__ = "Color Meter Team"
