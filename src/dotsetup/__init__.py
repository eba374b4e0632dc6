"""dotsetup - workstation provisioning from a dotfiles checkout."""

__version__ = "0.3.0"
