import argparse
import getpass
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sennight.errors import SennightError
from sennight.profiles import ProfileRegistry
from sennight.store import CollectionStore, resolve_data_dir


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a Sennight account")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address for login")
    parser.add_argument("--gender", default=None, help="Gender shown to other users")
    parser.add_argument(
        "--looking-for",
        dest="looking_for",
        nargs="+",
        default=None,
        help="Genders the user wants to see in discovery",
    )
    parser.add_argument(
        "--data-dir",
        dest="data_dir",
        default=None,
        help="Directory holding the collections (defaults to SENNIGHT_DATA_DIR or data/)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    args = parse_args()
    password = prompt_for_password()

    data_env = args.data_dir or os.getenv("SENNIGHT_DATA_DIR")
    store = CollectionStore(resolve_data_dir(data_env))
    store.initialize()

    try:
        user = ProfileRegistry(store).register(
            args.email.strip(),
            password,
            args.name.strip(),
            gender=args.gender,
            looking_for=args.looking_for,
        )
    except SennightError as exc:
        print(f"Error: {exc} ({exc.kind})", file=sys.stderr)
        return 1

    print(f"Created user {user.id}: {user.name} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
