"""Reply texts posted back to the requester."""


def invalid_name(name: str) -> str:
    return f'Sorry! 😬\n\n"{name}" is not a valid name! Must be 3+ alphanumeric characters.'


def unavailable_name(name: str, suffix: str) -> str:
    return f'Sorry! 😬\n\n"{name}{suffix}" is not available!'


def instructions(
    name: str, suffix: str, price: str, chain_label: str, address: str, window_minutes: int
) -> str:
    return (
        f'On it! 😎\n\nTo register "{name}{suffix}", send {price} ETH ({chain_label}) '
        f"to: {address}\n\nYou have {window_minutes} minutes. "
        "Late? You might miss out & risk funds.\n\nTerms in Bio."
    )


def registered(name: str, suffix: str, owner_address: str, explorer_link: str | None) -> str:
    text = f"Done! 😎\n\nRegistered {name}{suffix} to {owner_address}"
    if explorer_link:
        text += f"\n\ntx: {explorer_link}"
    return text
