import secrets

from tweet_link_saver.core.crypto import generate_encryption_key

# Generate a secure random key for Flask sessions
flask_key = secrets.token_hex(32)
# Generate the AES-GCM key used to encrypt stored API keys
encryption_key = generate_encryption_key()

print(f"SECRET_KEY={flask_key}")
print(f"ENCRYPTION_KEY={encryption_key}")
