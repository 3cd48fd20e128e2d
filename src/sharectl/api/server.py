from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sharectl.api.routers import backups, shares, systemd
from sharectl.version import get_version

app = FastAPI(
    title="sharectl API",
    description="Manage NFS exports and Samba shares.",
    version=get_version(),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shares.router)
app.include_router(backups.router)
app.include_router(systemd.router)
