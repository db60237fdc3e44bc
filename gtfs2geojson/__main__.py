import uvicorn

from gtfs2geojson import config

if __name__ == "__main__":
    uvicorn.run("gtfs2geojson.main:app", host=config.HOST, port=config.PORT)
