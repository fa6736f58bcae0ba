from wind_tunnel_sim import launch_viewer

if __name__ == "__main__":
    launch_viewer()
