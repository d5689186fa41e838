"""
Forecast service: everything the engine does around the outcome forecast.

The forecasting model itself is an external collaborator. This module
builds the text summary it is given and repairs whatever probabilities
come back into a distribution that sums to exactly 100.
"""
from typing import List, Mapping, Sequence, Tuple

Prediction = Tuple[str, float]

TREND_HINT = (
    'Historical trend: The "Attend Class" option usually has more votes, '
    'but "Bunk Class" can gain momentum on Fridays.'
)


def build_voting_summary(tally: Mapping[str, int]) -> str:
    """
    Render the current tally as the free-text input for the forecasting model.

    Example:
        {"Attend Class": 3, "Bunk Class": 1} ->
        'Current voting data for class attendance: Attend Class: 3 votes,
        Bunk Class: 1 votes. Historical trend: ... Predict the final
        probability for each option.'
    """
    votes = ", ".join(f"{option}: {count} votes" for option, count in tally.items())
    return (
        f"Current voting data for class attendance: {votes}. "
        f"{TREND_HINT} Predict the final probability for each option."
    )


def normalize(predictions: Sequence[Prediction]) -> List[Prediction]:
    """
    Scale raw (option, probability) pairs so the probabilities sum to 100.

    Order and option names are preserved. Scaling alone can drift from 100
    by a floating-point hair, so the remainder is added to the largest entry
    (the first one when several tie). This is a single pass, so the result
    is exact for inputs like [10, 30] or [1, 1, 1]; for arbitrary weights the
    sum can still land one unit off in the last float digit
    (e.g. 99.99999999999999).

    If the raw total is zero there is nothing to scale and the input comes
    back unchanged.

    Raises:
        ValueError: a raw probability is negative.
    """
    for option, probability in predictions:
        if probability < 0:
            raise ValueError(f"Probability for '{option}' must be non-negative, got {probability}")

    total = sum(probability for _, probability in predictions)
    if total <= 0:
        return list(predictions)

    scaled = [(option, probability / total * 100) for option, probability in predictions]

    remainder = 100 - sum(probability for _, probability in scaled)
    if remainder != 0:
        top = 0
        for index, (_, probability) in enumerate(scaled):
            if probability > scaled[top][1]:
                top = index
        option, probability = scaled[top]
        scaled[top] = (option, probability + remainder)

    return scaled
