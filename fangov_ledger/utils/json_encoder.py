"""Custom JSON encoding utilities"""
import dataclasses
import json
from datetime import datetime
from decimal import Decimal
from enum import Enum

class LedgerEncoder(json.JSONEncoder):
    """JSON encoder that handles datetimes, decimals, enums and dataclasses"""
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            # Normalized string keeps the exact value without float drift
            return format(obj.normalize(), 'f')
        if isinstance(obj, Enum):
            return obj.value
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)

def json_dumps(obj, **kwargs):
    """Helper function to dump JSON with ledger type handling"""
    return json.dumps(obj, cls=LedgerEncoder, **kwargs)
