from yktool.app.yubiotp.registry import Device, KeyRegistry, select_device

__all__ = ["Device", "KeyRegistry", "select_device"]
