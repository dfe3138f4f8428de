import random
import string


def generate_code(taken, length=6):
    """Generate a short uppercase code not present in `taken`."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code
