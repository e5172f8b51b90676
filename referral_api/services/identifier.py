import random
import string

ID_ALPHABET = string.ascii_uppercase + string.digits
ID_LENGTH = 9

_rng = random.SystemRandom()


def generate_user_id() -> str:
    """Random 9-char code from A-Z0-9; used as primary key and referral code.

    Uniqueness is left to the users table, callers retry on collision.
    """
    return "".join(_rng.choices(ID_ALPHABET, k=ID_LENGTH))
