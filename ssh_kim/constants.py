"""Library-wide constants.

These constants centralize tunable values used across modules to keep
behavior consistent and avoid duplication.
"""



class Constants:

    # Key derivation
    _KEY_SIZE_BYTES: int = 32
    _MACHINE_KEY_CONTEXT: str = "ssh-kim-machine-key"
    _PASSWORD_KEY_CONTEXT: str = "ssh-kim-password-salt"
    _UNKNOWN_MACHINE_ID: str = "unknown-machine"

    # Envelope format
    _IV_SIZE_BYTES: int = 16
    _BLOCK_SIZE_BITS: int = 128
    _ENVELOPE_SEPARATOR: str = ":"

    # Storage layout
    _DEFAULT_DATA_DIR_NAME: str = "data"
    _STORE_FILENAME: str = "ssh_keys.enc"
    _CONFIG_FILENAME: str = "config.json"
    _CONFIG_DIR_ENV: str = "SSH_KIM_CONFIG_DIR"
    _APP_DIR_NAME: str = "ssh-kim"
    _PUBLIC_KEY_SUFFIX: str = ".pub"

    # Input policy
    _MIN_PASSWORD_LENGTH: int = 6
    _MAX_NAME_LENGTH: int = 1000
    _KEY_PREVIEW_LENGTH: int = 50

    @classmethod
    def KEY_SIZE_BYTES(cls) -> int:
        return cls._KEY_SIZE_BYTES

    @classmethod
    def MACHINE_KEY_CONTEXT(cls) -> str:
        return cls._MACHINE_KEY_CONTEXT

    @classmethod
    def PASSWORD_KEY_CONTEXT(cls) -> str:
        return cls._PASSWORD_KEY_CONTEXT

    @classmethod
    def UNKNOWN_MACHINE_ID(cls) -> str:
        return cls._UNKNOWN_MACHINE_ID

    @classmethod
    def IV_SIZE_BYTES(cls) -> int:
        return cls._IV_SIZE_BYTES

    # AES block size, also the PKCS7 padding unit
    @classmethod
    def BLOCK_SIZE_BITS(cls) -> int:
        return cls._BLOCK_SIZE_BITS

    @classmethod
    def ENVELOPE_SEPARATOR(cls) -> str:
        return cls._ENVELOPE_SEPARATOR

    @classmethod
    def DEFAULT_DATA_DIR_NAME(cls) -> str:
        return cls._DEFAULT_DATA_DIR_NAME

    @classmethod
    def STORE_FILENAME(cls) -> str:
        return cls._STORE_FILENAME

    @classmethod
    def CONFIG_FILENAME(cls) -> str:
        return cls._CONFIG_FILENAME

    @classmethod
    def CONFIG_DIR_ENV(cls) -> str:
        return cls._CONFIG_DIR_ENV

    @classmethod
    def APP_DIR_NAME(cls) -> str:
        return cls._APP_DIR_NAME

    @classmethod
    def PUBLIC_KEY_SUFFIX(cls) -> str:
        return cls._PUBLIC_KEY_SUFFIX

    @classmethod
    def MIN_PASSWORD_LENGTH(cls) -> int:
        return cls._MIN_PASSWORD_LENGTH

    @classmethod
    def MAX_NAME_LENGTH(cls) -> int:
        return cls._MAX_NAME_LENGTH

    @classmethod
    def KEY_PREVIEW_LENGTH(cls) -> int:
        return cls._KEY_PREVIEW_LENGTH
