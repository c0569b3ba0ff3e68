"""Payment amount (native ETH) -> karma award schedule."""

# (minimum amount, karma), highest threshold first; thresholds are inclusive
KARMA_TIERS: tuple[tuple[float, int], ...] = (
    (0.1, 1000),
    (0.05, 500),
    (0.01, 100),
    (0.001, 10),
)


def resolve_karma(amount: float) -> int:
    """Return the award for the highest threshold `amount` reaches, or 0 below the lowest."""
    for minimum, karma in KARMA_TIERS:
        if amount >= minimum:
            return karma
    return 0
