"""
imagao — 로컬 PySide6 UI
- 이미지를 열고 자연어 지시문을 입력하면 Gemini 이미지 모델로 편집 요청
- 설정은 환경변수(.env) 로 오버라이드: GEMINI_API_KEY, GEMINI_MODEL, BACKEND, REQUEST_TIMEOUT, LOG_LEVEL
- PySide6(>=6.6, QtAsyncio), requests, Pillow, pydantic 필요

사용법(로컬):
  > export GEMINI_API_KEY=...
  > python main.py
"""

from __future__ import annotations

import asyncio
import io
import logging
import sys
from typing import Optional

from PIL import Image, ImageQt

from PySide6 import QtAsyncio
from PySide6.QtCore import Qt, QRectF
from PySide6.QtGui import QPixmap, QImage, QPainter
from PySide6.QtWidgets import (
    QApplication, QWidget, QSplitter, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QTextEdit, QFileDialog, QGraphicsView, QGraphicsScene,
    QGraphicsPixmapItem, QTreeWidget, QTreeWidgetItem, QMessageBox
)

from imagao import (
    EditSession, EditorSettings, ImageSource, InvalidInput, RawFile, SessionState,
    configure_logging, create_edit_client
)
from imagao.prompts import PROMPT_CATEGORIES
from imagao.utils import parse_data_url

logger = logging.getLogger("imagao.ui")


# ----------------------------- 이미지 뷰 ---------------------------------------
class ImagePane(QGraphicsView):  # 원본/결과 이미지를 그리는 뷰
    def __init__(self, title: str, placeholder: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setRenderHints(QPainter.Antialiasing | QPainter.SmoothPixmapTransform)
        self.setDragMode(QGraphicsView.ScrollHandDrag)
        self.scene = QGraphicsScene(self)
        self.setScene(self.scene)
        self.title = title
        self.placeholder = placeholder
        self.pixmap_item: Optional[QGraphicsPixmapItem] = None
        self.show_message(placeholder)

    def show_image(self, image: Image.Image) -> None:  # PIL→Qt 변환 후 표시
        qimg = ImageQt.ImageQt(image.convert("RGBA"))
        pix = QPixmap.fromImage(QImage(qimg))
        self.scene.clear()
        self.pixmap_item = QGraphicsPixmapItem(pix)
        self.scene.addItem(self.pixmap_item)
        self.setSceneRect(QRectF(0, 0, pix.width(), pix.height()))
        self.fitInView(self.scene.itemsBoundingRect(), Qt.KeepAspectRatio)

    def show_message(self, text: str) -> None:  # 이미지 대신 안내 문구
        self.scene.clear()
        self.pixmap_item = None
        self.scene.addText(f"{self.title}\n\n{text}")

    def resizeEvent(self, event):  # 창 크기 변경 시 다시 맞춤
        if self.pixmap_item is not None:
            self.fitInView(self.scene.itemsBoundingRect(), Qt.KeepAspectRatio)
        super().resizeEvent(event)


# ----------------------------- 좌측 컨트롤 패널 --------------------------------
class ControlPanel(QWidget):  # 지시문 입력, 추천 프롬프트, 생성/초기화 버튼
    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        layout = QVBoxLayout(self)

        r1 = QHBoxLayout()
        self.btn_open = QPushButton("이미지 열기")
        self.btn_save = QPushButton("결과 저장"); self.btn_save.setEnabled(False)
        self.btn_reset = QPushButton("Clear All")
        r1.addWidget(self.btn_open); r1.addWidget(self.btn_save); r1.addStretch(1); r1.addWidget(self.btn_reset)
        layout.addLayout(r1)

        layout.addWidget(QLabel("<b>Edit Instruction</b>"))
        self.txt_instruction = QTextEdit()
        self.txt_instruction.setPlaceholderText("Describe how you want to change the image...")
        self.txt_instruction.setFixedHeight(110)
        layout.addWidget(self.txt_instruction)

        # 카테고리별 추천 프롬프트 (더블클릭하면 지시문으로 복사)
        self.suggestions = QTreeWidget(); self.suggestions.setHeaderHidden(True)
        for name, prompts in PROMPT_CATEGORIES.items():
            parent_item = QTreeWidgetItem([name])
            for prompt in prompts:
                parent_item.addChild(QTreeWidgetItem([prompt]))
            self.suggestions.addTopLevelItem(parent_item)
        self.suggestions.expandAll()
        layout.addWidget(self.suggestions, 1)

        self.btn_generate = QPushButton("Generate Edit"); self.btn_generate.setEnabled(False)
        layout.addWidget(self.btn_generate)

        self.lbl_error = QLabel(""); self.lbl_error.setWordWrap(True)
        self.lbl_error.setStyleSheet("color:#f87171;")
        layout.addWidget(self.lbl_error)
        self.status = QLabel("status: idle"); layout.addWidget(self.status)


# ----------------------------- 메인 윈도우 --------------------------------------
class MainWindow(QWidget):  # 좌: 컨트롤, 우: 원본/결과 비교
    def __init__(self, session: EditSession):
        super().__init__()
        self.setWindowTitle("imagao — AI Image Editor")
        self.resize(1400, 900)
        self.session = session
        self.tasks = set()  # 실행 중인 asyncio 태스크 참조 유지

        self.controls = ControlPanel()
        self.original = ImagePane("Original", "Upload an image to start")
        self.result = ImagePane("Result", "Your edited image will appear here")

        images = QSplitter(Qt.Horizontal)
        images.addWidget(self.original); images.addWidget(self.result)
        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.controls); splitter.addWidget(images)
        splitter.setSizes([420, 980])

        root = QVBoxLayout(self)
        root.addWidget(QLabel("<h2>imagao</h2>"))
        root.addWidget(splitter, 1)

        c = self.controls
        c.btn_open.clicked.connect(self.open_image)
        c.btn_save.clicked.connect(self.save_result)
        c.btn_reset.clicked.connect(self.session.reset)
        c.btn_generate.clicked.connect(self.generate)
        c.txt_instruction.textChanged.connect(self.on_instruction_changed)
        c.suggestions.itemDoubleClicked.connect(self.on_suggestion)

        self.session.subscribe(lambda _: self.render())
        self.render()

    def spawn(self, coro) -> None:  # 태스크가 GC 되지 않도록 보관
        task = asyncio.ensure_future(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    def show_error(self, text: str) -> None:
        self.controls.lbl_error.setText(text)

    def on_instruction_changed(self) -> None:
        self.session.instruction = self.controls.txt_instruction.toPlainText()
        self.controls.btn_generate.setEnabled(self.session.can_generate)

    def on_suggestion(self, item: QTreeWidgetItem, _column: int) -> None:
        if item.parent() is not None:  # 카테고리 행은 무시
            self.controls.txt_instruction.setPlainText(item.text(0))

    def open_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "이미지 선택", filter="Images (*.png *.jpg *.jpeg *.webp);;All files (*)")
        if not path:
            return
        try:
            raw = RawFile.from_path(path, max_bytes=self.session.image_source.max_bytes)
        except (ValueError, OSError) as e:
            self.show_error(str(e))
            return
        self.spawn(self.acquire(raw))

    async def acquire(self, raw: RawFile) -> None:
        try:
            await self.session.acquire_image(raw)
        except InvalidInput as e:
            # 잘못된 파일은 세션 상태에 남기지 않고 바로 표시만
            self.show_error(f"Please select a valid image file ({e}).")

    def generate(self) -> None:
        if self.session.can_generate:
            self.spawn(self.session.generate())

    def save_result(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "결과 저장 폴더")
        if not directory:
            return
        try:
            path = self.session.save_result(directory)
        except (ValueError, OSError) as e:
            QMessageBox.critical(self, "오류", f"저장 실패: {e}")
            return
        self.controls.status.setText(f"saved: {path}")

    def render(self) -> None:  # 세션 상태 → 위젯 반영
        s = self.session
        c = self.controls
        if c.txt_instruction.toPlainText() != s.instruction:
            c.txt_instruction.blockSignals(True)
            c.txt_instruction.setPlainText(s.instruction)
            c.txt_instruction.blockSignals(False)

        if s.image is not None:
            self.original.show_image(s.image.display.image)
        else:
            self.original.show_message(self.original.placeholder)

        loading = s.state is SessionState.LOADING
        if s.result is not None:
            _, raw = parse_data_url(s.result)
            with Image.open(io.BytesIO(raw)) as edited:
                self.result.show_image(edited)
        elif loading:
            self.result.show_message("Consulting the model...")
        else:
            self.result.show_message(self.result.placeholder)

        c.btn_generate.setText("Generating..." if loading else "Generate Edit")
        c.btn_generate.setEnabled(s.can_generate)
        c.btn_open.setEnabled(not s.busy)
        c.btn_save.setEnabled(s.result is not None)
        c.lbl_error.setText(s.error or "")
        c.status.setText(f"status: {s.state.value.lower()}")


# ----------------------------- 진입점 ------------------------------------------
def main() -> None:
    settings = EditorSettings.from_env()
    configure_logging(settings.log_level)
    app = QApplication(sys.argv)
    try:
        client = create_edit_client(settings)
    except ValueError as e:
        QMessageBox.critical(None, "설정 오류", str(e))
        sys.exit(1)
    session = EditSession(client, ImageSource(max_bytes=settings.max_image_bytes))
    w = MainWindow(session)
    w.show()
    app.aboutToQuit.connect(session.close)  # 종료 시 표시용 핸들 해제
    QtAsyncio.run(handle_sigint=True)


if __name__ == "__main__":
    main()
