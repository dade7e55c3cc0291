from __future__ import annotations

from pykaza.players.query.classifier import QueryClassification as QueryClassification
from pykaza.players.query.classifier import classify as classify
