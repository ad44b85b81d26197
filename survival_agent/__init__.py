"""
One-Year Survival Analysis Agent.

A batch pipeline that merges clinical, genomic, lab and follow-up tables
for NSCLC patients, derives a one-year survival label, imputes missing
features from random-forest proximities, and evaluates a random-forest
classifier under leave-one-out cross-validation.

DISCLAIMER: This is a research tool for exploratory analysis of clinical
data. It does NOT provide medical diagnoses, prognoses or treatment
recommendations. All outputs are for research purposes only.
"""

__version__ = "0.1.0"
