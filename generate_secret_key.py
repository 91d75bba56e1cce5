#!/usr/bin/env python3
"""
Generate a JWT signing key for the console API and store it in .env.

    python generate_secret_key.py          print a key
    python generate_secret_key.py --write  also write it to .env
"""
import os
import sys
import secrets
from dotenv import dotenv_values

ENV_FILE = ".env"
EXAMPLE_FILE = ".env.example"
PLACEHOLDER = "SECRET_KEY=your-secret-key-for-jwt"

def generate_secret_key(length=32):
    """Hex key, two characters per byte"""
    return secrets.token_hex(length)

def update_env_file(secret_key, env_file=ENV_FILE):
    """
    Write SECRET_KEY into the env file. A missing file is created from the
    example file when there is one.
    """
    if not os.path.exists(env_file):
        if not os.path.exists(EXAMPLE_FILE):
            with open(env_file, "w") as f:
                f.write(f"SECRET_KEY={secret_key}\n")
            return
        with open(EXAMPLE_FILE) as f:
            content = f.read()
        with open(env_file, "w") as f:
            f.write(content.replace(PLACEHOLDER, f"SECRET_KEY={secret_key}"))
        return

    current_key = dotenv_values(env_file).get("SECRET_KEY")
    with open(env_file) as f:
        content = f.read()
    if current_key:
        content = content.replace(f"SECRET_KEY={current_key}", f"SECRET_KEY={secret_key}")
    else:
        content = content.rstrip("\n") + f"\nSECRET_KEY={secret_key}\n"
    with open(env_file, "w") as f:
        f.write(content)

if __name__ == "__main__":
    key = generate_secret_key()
    print(key)
    if "--write" in sys.argv[1:]:
        update_env_file(key)
        print(f"SECRET_KEY written to {ENV_FILE}")
