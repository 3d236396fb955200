import os
from keycove import encrypt, decrypt


def _secret_key() -> str:
    return os.environ.get("TOKEN_SECRET")

def decrypt_password(password: str):
  return decrypt(password,_secret_key())

def encrypt_password(password: str):
  return encrypt(password,_secret_key())
