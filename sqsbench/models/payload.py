# sqsbench/models/payload.py
import json
from typing import Any, Dict

"""
Synthetic SMS record used as the body of every benchmark message.
Content is irrelevant to the measurement; only its size matters.
"""
SAMPLE_SMS: Dict[str, Any] = {
    "src": "972525626731",
    "dst": "972502224696",
    "prefix": "972502224696",
    "url": "",
    "method": "POST",
    "text": "לקוח יקר עקב תקלה STOP",
    "log_sms": "true",
    "message_uuid": "ffe2bb44-d34f-4359-a7d7-217bf4e9f705",
    "message_time": "2017-07-13 13:12:47.046303",
    "carrier_rate": "0.0065",
    "carrier_amount": "0.013",
    "is_gsm": False,
    "is_unicode": True,
    "units": "2",
    "auth_info": {
        "auth_id": "MANZE1ODRHYWFIZGMXNJ",
        "auth_token": "NWRjNjU3ZDJhZDM0ZjE5NWE5ZWRmYTNmOGIzNGZm",
        "api_id": "de124d64-6186-11e7-920b-0600a1193e9b",
        "api_method": "POST",
        "api_name": "/api/v1/Message/",
        "account_id": "48844",
        "subaccount_id": "0",
        "parent_auth_id": "MANZE1ODRHYWFIZGMXNJ",
    },
}


def build_payload() -> str:
    """Serialize the sample record once; every message reuses the same body."""
    return json.dumps(SAMPLE_SMS, separators=(",", ":"), ensure_ascii=False)
