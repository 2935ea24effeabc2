import os

import cv2
import numpy as np

from .config import AppConfig


def read_image_safe(path):
    """
    [Windows兼容性] 安全读取图片，支持中文路径。
    先用 numpy 读出二进制流，再用 imdecode 解码；失败返回 None。
    """
    try:
        data = np.fromfile(str(path), dtype=np.uint8)
    except OSError:
        return None
    if data.size == 0:
        return None
    return cv2.imdecode(data, cv2.IMREAD_COLOR)


def fit_thumbnail(img, size):
    """等比缩放后居中贴到 size x size 的黑色画布上。"""
    canvas = np.zeros((size, size, 3), dtype=np.uint8)
    h, w = img.shape[:2]
    scale = size / max(h, w)
    nw, nh = max(1, int(w * scale)), max(1, int(h * scale))
    resized = cv2.resize(img, (nw, nh), interpolation=cv2.INTER_AREA)
    x, y = (size - nw) // 2, (size - nh) // 2
    canvas[y:y + nh, x:x + nw] = resized
    return canvas


class GalleryRenderer:
    """
    负责把画廊网格、标签菜单与提示消息绘制到一张画布上。
    """

    HEADER_H = 40
    FOOTER_H = 30

    def __init__(self, preview_size=AppConfig.PREVIEW_SIZE,
                 columns=AppConfig.GRID_COLUMNS, rows=AppConfig.GRID_ROWS):
        self.cfg = AppConfig
        self.preview_size = preview_size
        self.columns = columns
        self.rows = rows
        self._thumb_cache = {}

    @property
    def page_size(self):
        return self.columns * self.rows

    def canvas_size(self):
        pad = self.cfg.GRID_PADDING
        grid_w = self.columns * (self.preview_size + pad) + pad
        grid_h = self.rows * (self.preview_size + pad) + pad
        return grid_w + self.cfg.SIDEBAR_WIDTH, grid_h + self.HEADER_H + self.FOOTER_H

    def thumbnail(self, path):
        if path not in self._thumb_cache:
            img = read_image_safe(path)
            if img is None:
                thumb = np.full((self.preview_size, self.preview_size, 3),
                                self.cfg.COLORS['gray'], dtype=np.uint8)
            else:
                thumb = fit_thumbnail(img, self.preview_size)
            self._thumb_cache[path] = thumb
        return self._thumb_cache[path]

    def clear_cache(self):
        self._thumb_cache = {}

    def draw_shadow_text(self, img, text, pos, scale, color, thickness, offset=1):
        """绘制带阴影的文字，增加对比度。"""
        x, y = pos
        cv2.putText(img, text, (x + offset, y + offset),
                    self.cfg.FONT, scale, self.cfg.COLORS['shadow'], thickness)
        cv2.putText(img, text, (x, y),
                    self.cfg.FONT, scale, color, thickness)

    def draw_interface(self, current_state):
        """
        绘制主界面。

        Parameters
        ----------
        current_state : dict
            images, queue_folder, selected, anchor, labels, statistics,
            notice, video_count, pending_videos

        Returns
        -------
        np.ndarray
            BGR 画布。
        """
        width, height = self.canvas_size()
        canvas = np.zeros((height, width, 3), dtype=np.uint8)
        images = current_state['images']
        anchor = current_state.get('anchor') or 0

        # 1. Header
        info = (f"Images: {len(images)} | Selected: {len(current_state['selected'])}"
                f" | Videos: {current_state.get('pending_videos', 0)}/{current_state.get('video_count', 0)}")
        self.draw_shadow_text(canvas, info, (10, 28), self.cfg.FONT_SCALE_NORMAL,
                              self.cfg.COLORS['white'], 1)

        # 2. Grid (只绘制锚点所在的那一页)
        page = anchor // self.page_size if images else 0
        self._draw_grid(canvas, current_state, page)

        # 3. Label Menu
        self._draw_label_menu(canvas, current_state['labels'], current_state['statistics'])

        # 4. Footer
        if current_state.get('editing_labels'):
            footer = "Label editor  [N] Add [0-9] Remove [K/ESC] Save"
        elif images:
            pages = (len(images) - 1) // self.page_size + 1
            footer = f"Page {page + 1}/{pages}  [WASD] Move [SPACE] Toggle [R] Range [0-9] Label [U] Undo"
        else:
            footer = "Queue is empty  [E] Extract frames  [ESC] Quit"
        self.draw_shadow_text(canvas, footer, (10, height - 10), 0.45,
                              self.cfg.COLORS['light_gray'], 1)

        # 5. Toast
        notice = current_state.get('notice')
        if notice:
            color = self.cfg.NOTICE_COLORS.get(notice.level, self.cfg.COLORS['white'])
            (w_msg, h_msg), _ = cv2.getTextSize(notice.message, self.cfg.FONT,
                                                self.cfg.FONT_SCALE_TITLE, 2)
            self.draw_shadow_text(canvas, notice.message, ((width - w_msg) // 2, height // 2 + h_msg // 2),
                                  self.cfg.FONT_SCALE_TITLE, color, 2)

        return canvas

    def _draw_grid(self, canvas, current_state, page):
        pad = self.cfg.GRID_PADDING
        size = self.preview_size
        images = current_state['images']
        selected = set(current_state['selected'])
        anchor = current_state.get('anchor')

        start = page * self.page_size
        for i, name in enumerate(images[start:start + self.page_size]):
            index = start + i
            row, col = divmod(i, self.columns)
            x = pad + col * (size + pad)
            y = self.HEADER_H + pad + row * (size + pad)

            thumb = self.thumbnail(os.path.join(current_state['queue_folder'], name))
            canvas[y:y + size, x:x + size] = thumb

            if name in selected:
                cv2.rectangle(canvas, (x - 3, y - 3), (x + size + 2, y + size + 2),
                              self.cfg.COLORS['green'], 2)
            if index == anchor:
                cv2.rectangle(canvas, (x - 1, y - 1), (x + size, y + size),
                              self.cfg.COLORS['yellow'], 1)

    def _draw_label_menu(self, canvas, labels, statistics):
        x0 = canvas.shape[1] - self.cfg.SIDEBAR_WIDTH + 10
        cv2.line(canvas, (x0 - 10, 0), (x0 - 10, canvas.shape[0]), self.cfg.COLORS['gray'], 1)
        self.draw_shadow_text(canvas, "Labels", (x0, 28), self.cfg.FONT_SCALE_NORMAL,
                              self.cfg.COLORS['yellow'], 1)

        if not labels:
            self.draw_shadow_text(canvas, "(no dataset.yaml)", (x0, 60), 0.5,
                                  self.cfg.COLORS['light_gray'], 1)
            return

        for i, label in enumerate(labels):
            key = str(i) if i < 10 else '-'
            text = f"[{key}] {label} ({statistics.get(label, 0)})"
            self.draw_shadow_text(canvas, text, (x0, 60 + i * 26), 0.55,
                                  self.cfg.COLORS['white'], 1)
