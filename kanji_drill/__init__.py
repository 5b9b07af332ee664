"""
Kanji Drill

Import a kanji spreadsheet, track what changed between imports, and quiz
yourself on the readings.
"""

from . import db
from . import cells
from . import builder
from . import classifier
from . import corpus
from . import importer
from . import quiz

__version__ = "0.1.0"
__all__ = ["db", "cells", "builder", "classifier", "corpus", "importer", "quiz"]
