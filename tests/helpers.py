def auth(token):
    return {"Authorization": f"Bearer {token}"}
