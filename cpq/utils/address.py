ADDRESS_FIELDS = (
    "street_address",
    "address_line2",
    "pin",
    "city",
    "district",
    "state",
    "country",
)

ADDRESS_TARGETS = {
    "shipping": "same_as_billing",
    "wpc": "wpc_same_as_billing",
}


def address_of(data: dict, prefix: str) -> dict:
    return {field: data.get(f"{prefix}_{field}") for field in ADDRESS_FIELDS}


def copy_billing_address(data: dict, target: str) -> dict:
    """
    One-time snapshot copy of the billing block into the shipping or WPC
    block. Later edits to billing are not propagated.
    """
    if target not in ADDRESS_TARGETS:
        raise ValueError(f"Unknown address target: {target}")

    for field in ADDRESS_FIELDS:
        data[f"{target}_{field}"] = data.get(f"billing_{field}")
    return data


def apply_same_as_billing(data: dict) -> dict:
    """
    Copy billing into every block whose flag is set. A cleared flag
    leaves the last copied values in place.
    """
    for target, flag in ADDRESS_TARGETS.items():
        if data.get(flag):
            copy_billing_address(data, target)
    return data


def format_address(data, prefix: str) -> str:
    if not isinstance(data, dict):
        data = {
            f"{prefix}_{field}": getattr(data, f"{prefix}_{field}", None)
            for field in ADDRESS_FIELDS
        }
    parts = [v for v in address_of(data, prefix).values() if v]
    return ", ".join(parts)
