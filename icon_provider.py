# icon_provider.py
"""
Icon rendering for files on disk, in two tiers:

1. ShellImageProvider     - IShellItemImageFactory, up to 256x256
2. AssociatedIconProvider - ExtractAssociatedIconW, the classic 32x32 icon

Both go through the Windows shell via ctypes and hand back a PIL image.
Platforms without the shell get NullIconProvider.
"""
import os
import logging
import ctypes
from typing import List, Optional

from PIL import Image

logger = logging.getLogger("IconProvider")

LARGE_ICON_SIZE = 256

IID_ISHELLITEMIMAGEFACTORY = "{bcc18b79-ba16-442f-80c4-8a59c30c463b}"
SIIGBF_BIGGERSIZEOK = 0x01
SIIGBF_ICONONLY = 0x04
BI_RGB = 0
DIB_RGB_COLORS = 0

_WIN32 = None


def _win32():
    """Loads and types the shell/GDI entry points once, on first use."""
    global _WIN32
    if _WIN32 is not None:
        return _WIN32

    from ctypes import wintypes

    class GUID(ctypes.Structure):
        _fields_ = [
            ("Data1", wintypes.DWORD), ("Data2", wintypes.WORD),
            ("Data3", wintypes.WORD), ("Data4", ctypes.c_ubyte * 8),
        ]

    class SIZE(ctypes.Structure):
        _fields_ = [("cx", wintypes.LONG), ("cy", wintypes.LONG)]

    class BITMAP(ctypes.Structure):
        _fields_ = [
            ('bmType', wintypes.LONG), ('bmWidth', wintypes.LONG),
            ('bmHeight', wintypes.LONG), ('bmWidthBytes', wintypes.LONG),
            ('bmPlanes', wintypes.WORD), ('bmBitsPixel', wintypes.WORD),
            ('bmBits', ctypes.c_void_p),
        ]

    class BITMAPINFOHEADER(ctypes.Structure):
        _fields_ = [
            ('biSize', wintypes.DWORD), ('biWidth', wintypes.LONG),
            ('biHeight', wintypes.LONG), ('biPlanes', wintypes.WORD),
            ('biBitCount', wintypes.WORD), ('biCompression', wintypes.DWORD),
            ('biSizeImage', wintypes.DWORD), ('biXPelsPerMeter', wintypes.LONG),
            ('biYPelsPerMeter', wintypes.LONG), ('biClrUsed', wintypes.DWORD),
            ('biClrImportant', wintypes.DWORD),
        ]

    class ICONINFO(ctypes.Structure):
        _fields_ = [
            ('fIcon', wintypes.BOOL), ('xHotspot', wintypes.DWORD),
            ('yHotspot', wintypes.DWORD), ('hbmMask', wintypes.HBITMAP),
            ('hbmColor', wintypes.HBITMAP),
        ]

    shell32 = ctypes.windll.shell32
    user32 = ctypes.windll.user32
    gdi32 = ctypes.windll.gdi32
    ole32 = ctypes.windll.ole32

    # 64-bit handles: declare every signature
    ole32.CoInitialize.argtypes = [ctypes.c_void_p]
    ole32.CoUninitialize.argtypes = []
    ole32.CoUninitialize.restype = None
    ole32.CLSIDFromString.argtypes = [wintypes.LPCWSTR, ctypes.POINTER(GUID)]
    shell32.SHCreateItemFromParsingName.argtypes = [
        wintypes.LPCWSTR, ctypes.c_void_p, ctypes.POINTER(GUID), ctypes.POINTER(ctypes.c_void_p)]
    shell32.SHCreateItemFromParsingName.restype = ctypes.c_long
    shell32.ExtractAssociatedIconW.argtypes = [
        wintypes.HINSTANCE, wintypes.LPWSTR, ctypes.POINTER(wintypes.WORD)]
    shell32.ExtractAssociatedIconW.restype = wintypes.HICON
    user32.GetIconInfo.argtypes = [wintypes.HICON, ctypes.POINTER(ICONINFO)]
    user32.DestroyIcon.argtypes = [wintypes.HICON]
    user32.GetDC.argtypes = [wintypes.HWND]
    user32.GetDC.restype = wintypes.HDC
    user32.ReleaseDC.argtypes = [wintypes.HWND, wintypes.HDC]
    gdi32.GetObjectW.argtypes = [wintypes.HANDLE, ctypes.c_int, ctypes.c_void_p]
    gdi32.GetDIBits.argtypes = [
        wintypes.HDC, wintypes.HBITMAP, wintypes.UINT, wintypes.UINT,
        ctypes.c_void_p, ctypes.POINTER(BITMAPINFOHEADER), wintypes.UINT]
    gdi32.DeleteObject.argtypes = [wintypes.HGDIOBJ]

    get_image_proto = ctypes.WINFUNCTYPE(
        ctypes.c_long, ctypes.c_void_p, SIZE, ctypes.c_int, ctypes.POINTER(wintypes.HBITMAP))
    release_proto = ctypes.WINFUNCTYPE(ctypes.c_ulong, ctypes.c_void_p)

    _WIN32 = {
        "shell32": shell32, "user32": user32, "gdi32": gdi32, "ole32": ole32,
        "GUID": GUID, "SIZE": SIZE, "BITMAP": BITMAP,
        "BITMAPINFOHEADER": BITMAPINFOHEADER, "ICONINFO": ICONINFO,
        "HBITMAP": wintypes.HBITMAP, "WORD": wintypes.WORD,
        "get_image_proto": get_image_proto, "release_proto": release_proto,
    }
    return _WIN32


def hbitmap_to_image(hbitmap) -> Optional[Image.Image]:
    """Copies a GDI bitmap into a PIL RGBA image. The handle is not freed."""
    w = _win32()
    gdi32, user32 = w["gdi32"], w["user32"]

    bmp = w["BITMAP"]()
    if not gdi32.GetObjectW(hbitmap, ctypes.sizeof(bmp), ctypes.byref(bmp)):
        return None
    width, height = bmp.bmWidth, abs(bmp.bmHeight)
    if width <= 0 or height <= 0:
        return None

    header = w["BITMAPINFOHEADER"]()
    header.biSize = ctypes.sizeof(header)
    header.biWidth = width
    header.biHeight = -height  # top-down rows
    header.biPlanes = 1
    header.biBitCount = 32
    header.biCompression = BI_RGB

    buffer = (ctypes.c_ubyte * (width * height * 4))()
    hdc = user32.GetDC(None)
    try:
        rows = gdi32.GetDIBits(hdc, hbitmap, 0, height, buffer, ctypes.byref(header), DIB_RGB_COLORS)
    finally:
        user32.ReleaseDC(None, hdc)
    if rows != height:
        return None
    return Image.frombuffer('RGBA', (width, height), bytes(buffer), 'raw', 'BGRA', 0, 1)


class IconProvider:
    """Renders an icon for a file on disk, or None when it can't."""
    name = "base"

    def render(self, path: str, size: int = LARGE_ICON_SIZE) -> Optional[Image.Image]:
        raise NotImplementedError


class NullIconProvider(IconProvider):
    name = "null"

    def render(self, path: str, size: int = LARGE_ICON_SIZE) -> Optional[Image.Image]:
        return None


class ShellImageProvider(IconProvider):
    name = "shell-image"

    def render(self, path: str, size: int = LARGE_ICON_SIZE) -> Optional[Image.Image]:
        w = _win32()
        # S_OK and S_FALSE both need a matching CoUninitialize
        initialized = w["ole32"].CoInitialize(None) >= 0
        try:
            return self._render(w, path, size)
        finally:
            if initialized:
                w["ole32"].CoUninitialize()

    def _render(self, w, path: str, size: int) -> Optional[Image.Image]:
        iid = w["GUID"]()
        w["ole32"].CLSIDFromString(IID_ISHELLITEMIMAGEFACTORY, ctypes.byref(iid))

        factory = ctypes.c_void_p()
        hr = w["shell32"].SHCreateItemFromParsingName(path, None, ctypes.byref(iid), ctypes.byref(factory))
        if hr < 0 or not factory.value:
            return None

        # IUnknown (3 slots) then IShellItemImageFactory::GetImage
        vtable = ctypes.cast(factory, ctypes.POINTER(ctypes.POINTER(ctypes.c_void_p))).contents
        get_image = w["get_image_proto"](vtable[3])
        release = w["release_proto"](vtable[2])

        hbitmap = w["HBITMAP"]()
        try:
            hr = get_image(factory, w["SIZE"](size, size),
                           SIIGBF_BIGGERSIZEOK | SIIGBF_ICONONLY, ctypes.byref(hbitmap))
        finally:
            release(factory)
        if hr < 0 or not hbitmap.value:
            return None

        try:
            return hbitmap_to_image(hbitmap)
        finally:
            w["gdi32"].DeleteObject(hbitmap)


class AssociatedIconProvider(IconProvider):
    name = "associated-icon"

    def render(self, path: str, size: int = LARGE_ICON_SIZE) -> Optional[Image.Image]:
        w = _win32()
        user32, gdi32 = w["user32"], w["gdi32"]

        # ExtractAssociatedIconW may write back into the path buffer
        path_buffer = ctypes.create_unicode_buffer(path, max(260, len(path) + 1))
        index = w["WORD"](0)
        hicon = w["shell32"].ExtractAssociatedIconW(None, path_buffer, ctypes.byref(index))
        if not hicon:
            return None

        info = w["ICONINFO"]()
        try:
            if not user32.GetIconInfo(hicon, ctypes.byref(info)):
                return None
            if not info.hbmColor:
                return None
            return hbitmap_to_image(info.hbmColor)
        finally:
            if info.hbmMask:
                gdi32.DeleteObject(info.hbmMask)
            if info.hbmColor:
                gdi32.DeleteObject(info.hbmColor)
            user32.DestroyIcon(hicon)


def default_icon_providers() -> List[IconProvider]:
    """Large-format first, associated icon second."""
    if os.name == 'nt':
        return [ShellImageProvider(), AssociatedIconProvider()]
    return [NullIconProvider()]
