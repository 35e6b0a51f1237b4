import streamlit as st
import requests
import pandas as pd
import os

# Backend API base (local development default)
API_URL = os.getenv("API_URL", "http://localhost:8000/api/v1")

st.set_page_config(page_title="Guestbook Moderation", layout="wide")

if "page" not in st.session_state:
    st.session_state.page = 0

def load_page(page: int, page_size: int):
    # Out-of-range pages come back as a redirect to the nearest valid page; requests follows it
    res = requests.get(f"{API_URL}/guestbook", params={"page": page, "page_size": page_size})
    if res.status_code != 200:
        st.error(f"Failed to load entries: {res.text}")
        return None
    data = res.json()
    st.session_state.page = data["page"]
    st.session_state.entries_df = pd.DataFrame(data["items"])
    st.session_state.page_info = data
    return data

def show_errors(res):
    body = res.json()
    st.error(body.get("detail", res.text))
    for field, message in body.get("errors", {}).items():
        st.caption(f"{field}: {message}")

def entries_tab():
    st.header("Entries")

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        page_size = st.number_input("Page size", min_value=1, max_value=50, value=5)
    with col2:
        page = st.number_input("Page", value=st.session_state.page, step=1)
    with col3:
        if st.button("Load"):
            try:
                load_page(int(page), int(page_size))
            except Exception as e:
                st.error(f"Connection Error: {e}")

    if "page_info" in st.session_state:
        info = st.session_state.page_info
        st.caption(f"Page {info['page']} of {info['last_page']} ({info['total']} entries)")

    if "entries_df" not in st.session_state or st.session_state.entries_df.empty:
        st.info("No entries loaded.")
        return

    df = st.session_state.entries_df
    st.dataframe(df, use_container_width=True)

    st.subheader("Edit / Delete Entry")
    selected_id = st.selectbox("Select Entry", df['id'].tolist())
    if not selected_id:
        return

    entry = df[df['id'] == selected_id].iloc[0]
    with st.expander(f"Entry #{selected_id}", expanded=True):
        with st.form("edit_entry"):
            name = st.text_input("Name", value=entry['name'])
            email = st.text_input("Email", value=entry['email'])
            phone = st.text_input("Phone", value=entry['phone'])
            message = st.text_area("Message", value=entry['message'])
            review = st.text_area("Review", value=entry['review'])
            clear_avatar = st.checkbox("Remove avatar", value=False)
            clear_review_image = st.checkbox("Remove review image", value=False)

            c1, c2 = st.columns(2)
            with c1:
                update_submitted = st.form_submit_button("Update Entry")
            with c2:
                delete_submitted = st.form_submit_button("DELETE Entry", type="primary")

            if update_submitted:
                payload = {"name": name, "email": email, "phone": phone, "message": message, "review": review}
                if clear_avatar:
                    payload["avatar_media_id"] = None
                if clear_review_image:
                    payload["review_image_media_id"] = None
                r = requests.patch(f"{API_URL}/guestbook/{selected_id}", json=payload)
                if r.status_code == 200:
                    st.success("The guestbook entry has been updated.")
                else:
                    show_errors(r)

            if delete_submitted:
                r = requests.delete(f"{API_URL}/guestbook/{selected_id}")
                if r.status_code == 200 and r.json()["deleted"]:
                    st.warning("The guestbook entry has been deleted.")
                else:
                    st.error(r.json().get("message", r.text))

def field_check_tab():
    st.header("Field Check")
    with st.form("field_check"):
        name = st.text_input("Name")
        email = st.text_input("Email")
        phone = st.text_input("Phone")
        submitted = st.form_submit_button("Check")
        if submitted:
            r = requests.post(f"{API_URL}/guestbook/validate", json={"name": name, "email": email, "phone": phone})
            if r.status_code == 200:
                for field, result in r.json().items():
                    if result["valid"]:
                        st.success(f"{field}: {result['message']}")
                    else:
                        st.error(f"{field}: {result['message']}")
            else:
                st.error(r.text)

st.sidebar.title("Guestbook Moderation")
tab1, tab2 = st.tabs(["Entries", "Field Check"])
with tab1:
    entries_tab()
with tab2:
    field_check_tab()
