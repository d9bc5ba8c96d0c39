import random
import string

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def random_string(length, rng=None):
    if length < 0:
        raise ValueError("length must be >= 0")
    r = rng or random
    return "".join(r.choices(ALPHABET, k=length))


def random_message(min_length=250, max_length=300, rng=None):
    """Random alphanumeric message whose length is uniform in [min_length, max_length]."""
    if min_length > max_length:
        raise ValueError("min_length must not exceed max_length")
    r = rng or random
    return random_string(r.randint(min_length, max_length), rng=r)
