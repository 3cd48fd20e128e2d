from abc import ABC, abstractmethod
from typing import Dict


class PackageManager(ABC):
    # component -> distro package name
    packages: Dict[str, str] = {}

    @abstractmethod
    def install(self, package):
        pass

    def package_for(self, component: str) -> str:
        try:
            return self.packages[component]
        except KeyError:
            raise ValueError(
                f"Unknown component '{component}', expected one of: {', '.join(self.packages)}"
            ) from None
