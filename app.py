"""
app.py - Streamlit front-end for md2pdf.

Run with:
    streamlit run app.py
"""
import logging
import tempfile
import time
from pathlib import Path

import streamlit as st

import config
from converter import convert_markdown

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s [%(name)s] %(message)s",
)

UPLOAD_LIMIT_MB = 10

PAPER_CHOICES = list(config.PAPER_SIZES_MM)
MARGIN_CHOICES = list(config.MARGIN_PRESETS)


def _convert_upload(uploaded, paper: str, margin: str):
    """Convert one uploaded file; returns (GenerationResult, infos, images, seconds)."""
    started = time.time()
    markdown = uploaded.getvalue().decode("utf-8")
    # uploads have no directory of their own, so relative images cannot resolve
    with tempfile.TemporaryDirectory() as base_path:
        generated, infos, images = convert_markdown(
            markdown,
            base_path=base_path,
            paper_size=paper,
            margin_preset=margin,
            title=Path(uploaded.name).stem,
        )
    return generated, infos, images, time.time() - started


def _show_result(uploaded, generated, infos, images, seconds):
    width_col, height_col, image_col, time_col = st.columns(4)
    width_col.metric("Width", f"{generated.page_width}pt")
    height_col.metric("Height", f"{round(generated.target_height)}pt")
    image_col.metric("Images", f"{len(images)}/{len(infos)}")
    time_col.metric("Time", f"{seconds:.1f}s")

    correction = generated.correction
    if correction.strategy == "fallback":
        st.warning(f"Image positions were not captured; estimated "
                   f"+{round(correction.correction)}pt for images.")
    missing = [info.href for info in infos if info.id not in images]
    if missing:
        st.info("Shown as placeholders: " + ", ".join(missing))

    pdf_name = f"{Path(uploaded.name).stem}.pdf"
    st.download_button(
        label=f"Download {pdf_name}",
        data=generated.pdf_bytes,
        file_name=pdf_name,
        mime="application/pdf",
        key=f"download-{uploaded.name}",
    )


st.set_page_config(page_title="md2pdf", page_icon="📄")
st.title("md2pdf")
st.write("Markdown in, one PDF page out. The page is exactly as tall as the content.")

with st.sidebar:
    paper = st.selectbox("Paper width", PAPER_CHOICES,
                         index=PAPER_CHOICES.index(config.DEFAULT_PAPER_SIZE))
    margin = st.radio("Margins", MARGIN_CHOICES,
                      index=MARGIN_CHOICES.index(config.DEFAULT_MARGIN_PRESET))
    st.caption(f"Files up to {UPLOAD_LIMIT_MB} MB. Remote (http/https) images are fetched; "
               f"relative image paths are not available for uploads.")

files = st.file_uploader("Markdown files", type=["md", "markdown"], accept_multiple_files=True)

if files and st.button("Convert", type="primary"):
    converted = 0
    for uploaded in files:
        st.subheader(uploaded.name)
        if uploaded.size > UPLOAD_LIMIT_MB * 1024 * 1024:
            st.error(f"Skipped: larger than {UPLOAD_LIMIT_MB} MB.")
            continue
        with st.spinner(f"Converting {uploaded.name}..."):
            try:
                outcome = _convert_upload(uploaded, paper, margin)
            except Exception as e:
                st.error(f"{type(e).__name__}: {e}")
                continue
        _show_result(uploaded, *outcome)
        converted += 1

    if len(files) > 1:
        st.caption(f"{converted} of {len(files)} files converted.")
