# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Registry which maps the `keyDerivationFunc` OID of the `PBES2-params` to a KDF implementation."""

import logging
import threading
from typing import Callable, Dict, Optional, Union

from pyasn1.type import univ

from pkcs8_logic.exceptions import UnsupportedKDF
from pkcs8_logic.kdfutils import KDFParameters, PBKDF2Parameters, ScryptParameters
from pkcs8_logic.oidutils import id_PBKDF2, id_scrypt, may_return_oid_to_name

KDFFactory = Callable[[], KDFParameters]


class KDFRegistry:
    """Maps KDF OIDs to factories which create empty `KDFParameters` objects.

    A registry is populated during setup and only read afterwards, so lookups
    need no locking.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._factories: Dict[univ.ObjectIdentifier, KDFFactory] = {}

    def register(self, oid: Union[univ.ObjectIdentifier, str], factory: KDFFactory) -> None:
        """Register a KDF factory for the OID.

        A later registration for the same OID replaces the earlier one.

        :param oid: The OID of the key derivation function.
        :param factory: A callable returning an empty `KDFParameters` object.
        """
        oid = univ.ObjectIdentifier(oid)
        if oid in self._factories:
            logging.debug("Replacing the registered KDF for: %s", may_return_oid_to_name(oid))
        self._factories[oid] = factory

    def lookup(self, oid: Union[univ.ObjectIdentifier, str]) -> Optional[KDFFactory]:
        """Return the factory registered for the OID (object or dotted string) or `None`."""
        return self._factories.get(univ.ObjectIdentifier(oid))

    def resolve(self, oid: univ.ObjectIdentifier, parameter_bytes: bytes) -> KDFParameters:
        """Create the KDF parameters for the OID and decode the parameters into it.

        :param oid: The OID of the key derivation function.
        :param parameter_bytes: The DER-encoded KDF parameters.
        :return: The decoded `KDFParameters`.
        :raises UnsupportedKDF: If no KDF is registered for the OID.
        :raises MalformedDER: If the parameters could not be decoded.
        """
        factory = self.lookup(oid)
        if factory is None:
            raise UnsupportedKDF(oid, extra_info="is not a registered key derivation function.")

        kdf_params = factory()
        kdf_params.decode(parameter_bytes)
        return kdf_params

    def __contains__(self, oid: Union[univ.ObjectIdentifier, str]) -> bool:
        return self.lookup(oid) is not None

    def __len__(self) -> int:
        return len(self._factories)


_DEFAULT_REGISTRY: Optional[KDFRegistry] = None
_DEFAULT_REGISTRY_LOCK = threading.Lock()


def get_default_kdf_registry() -> KDFRegistry:
    """Return the process-wide registry with PBKDF2 and scrypt registered.

    The registry is populated once on first use.
    """
    global _DEFAULT_REGISTRY  # pylint: disable=global-statement
    with _DEFAULT_REGISTRY_LOCK:
        if _DEFAULT_REGISTRY is None:
            registry = KDFRegistry()
            registry.register(id_PBKDF2, PBKDF2Parameters)
            registry.register(id_scrypt, ScryptParameters)
            _DEFAULT_REGISTRY = registry
    return _DEFAULT_REGISTRY
