import os

LOG_LEVEL = os.getenv("RFCASCADE_LOG_LEVEL", "WARNING").upper()
OUTDIR = os.getenv("RFCASCADE_OUTDIR", "logs")
PLOTS_DIR = os.getenv("RFCASCADE_PLOTS_DIR", "plots")
